"""JIRA REST client for searching, filing and linking CI failure issues."""

import logging
from dataclasses import dataclass, field
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import JiraError

logger = logging.getLogger(__name__)

API_PREFIX = "rest/api/2"
REQUEST_TIMEOUT = 30
# Only idempotent requests are retried; POSTs create issues, comments and links.
IDEMPOTENT_METHODS = ["GET", "HEAD"]


@dataclass
class Issue:
    """The subset of a JIRA issue junit2jira works with."""
    key: str = ""
    id: str = ""
    self: str = ""
    summary: str = ""
    description: str = ""
    project: str = ""
    issue_type: str = "Bug"
    labels: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> "Issue":
        fields = data.get("fields") or {}
        return cls(
            key=data.get("key", ""),
            id=data.get("id", ""),
            self=data.get("self", ""),
            summary=fields.get("summary") or "",
            description=fields.get("description") or "",
            project=(fields.get("project") or {}).get("key", ""),
            issue_type=(fields.get("issuetype") or {}).get("name", ""),
            labels=list(fields.get("labels") or []),
        )

    def to_fields(self) -> dict:
        return {
            "issuetype": {"name": self.issue_type},
            "project": {"key": self.project},
            "summary": self.summary,
            "description": self.description,
            "labels": self.labels,
        }


class JiraClient:
    """Client for the JIRA REST API v2 using a personal access token."""

    def __init__(self, base_url: str, token: str = "", retries: int = 4):
        self.base_url = base_url.rstrip("/") + "/"
        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": "junit2jira/0.1.0",
            "Accept": "application/json",
        })
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

        retry = Retry(
            total=retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=IDEMPOTENT_METHODS,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{API_PREFIX}/{path}"

    def _request(self, method: str, path: str, what: str, **kwargs) -> Optional[dict]:
        try:
            response = self.session.request(method, self._url(path), timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Failed to {what}: {e}")
            raise JiraError(f"could not {what}: {e}") from e

        if not response.ok:
            logger.error(f"Failed to {what}: status {response.status_code}: {response.text}")
            raise JiraError(f"could not {what}", status_code=response.status_code, body=response.text)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Failed to {what}: invalid JSON response: {e}")
            raise JiraError(f"could not {what}: invalid JSON response",
                            status_code=response.status_code, body=response.text) from e

    def search(self, jql: str, max_results: int = 50) -> list[Issue]:
        """Search issues with a JQL query."""
        data = self._request("GET", "search", "search issues", params={
            "jql": jql,
            "maxResults": max_results,
            "fields": "summary,description,labels,project,issuetype",
        })
        return [Issue.from_json(i) for i in (data or {}).get("issues", [])]

    def create_issue(self, issue: Issue) -> Issue:
        """Create ``issue`` and return it with key, id and self link filled in."""
        data = self._request("POST", "issue", f"create issue {issue.summary}",
                             json={"fields": issue.to_fields()}) or {}
        # The API only returns identifiers, the rest is copied from the request.
        issue.key = data.get("key", "")
        issue.id = data.get("id", "")
        issue.self = data.get("self", "")
        return issue

    def add_comment(self, issue_id: str, body: str) -> str:
        """Comment on an issue and return the new comment id."""
        data = self._request("POST", f"issue/{issue_id}/comment", f"comment on issue {issue_id}",
                             json={"body": body}) or {}
        return data.get("id", "")

    def add_link(self, outward_key: str, inward_key: str, link_type: str = "Related"):
        self._request("POST", "issueLink", f"link {outward_key} to {inward_key}", json={
            "type": {"name": link_type},
            "outwardIssue": {"key": outward_key},
            "inwardIssue": {"key": inward_key},
        })
