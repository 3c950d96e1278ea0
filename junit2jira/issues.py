"""Filing of failing tests as JIRA issues or comments on existing issues."""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import Junit2JiraError
from .formatting import FormatOptions, JiraTestCase
from .jira_client import Issue, JiraClient

logger = logging.getLogger(__name__)

CI_FAILURE_LABEL = "CI_Failure"
LINK_TYPE = "Related"

JQL = """project in ({project})
AND issuetype = Bug
AND status != Closed
AND labels = CI_Failure
AND summary ~ {summary}
ORDER BY created DESC"""


@dataclass
class TestIssue:
    """Issue a failing test was reported to."""
    __test__ = False

    issue: Optional[Issue]
    test_case: JiraTestCase
    new_jira: bool = False


def new_issue(project: str, summary: str, description: str) -> Issue:
    return Issue(
        project=project,
        summary=summary,
        description=description,
        issue_type="Bug",
        labels=[CI_FAILURE_LABEL],
    )


def find_matching_issue(issues: Sequence[Issue], summary: str) -> Optional[Issue]:
    for issue in issues:
        if issue.summary == summary:
            return issue
    return None


def build_jql(project: str, summary: str) -> str:
    return JQL.format(project=project, summary=json.dumps(summary))


class IssueFiler:
    """Creates issues for new failures and comments on known ones."""

    def __init__(self, client: JiraClient, project: str, dry_run: bool = False,
                 options: FormatOptions = FormatOptions()):
        self.client = client
        self.project = project
        self.dry_run = dry_run
        self.options = options

    def create_issue_or_comment(self, tc: JiraTestCase) -> Optional[TestIssue]:
        summary = tc.summary(self.options)
        description = tc.description(self.options)

        logger.debug(f"[?] {summary}: Searching for issue")
        issue = find_matching_issue(self.client.search(build_jql(self.project, summary)), summary)
        test_issue = TestIssue(issue=issue, test_case=tc)

        if issue is None:
            logger.info(f"[?] {summary}: Issue not found. Creating new issue...")
            if self.dry_run:
                logger.debug(f"[?] {summary}: Dry run: will just print issue\n{description!r}")
                return None
            issue = self.client.create_issue(new_issue(self.project, summary, description))
            logger.info(f"[{issue.key}] {summary}: Created new issue")
            test_issue.issue = issue
            test_issue.new_jira = True
            return test_issue

        logger.info(f"[{issue.key}] {issue.summary}: Found issue. Creating a comment...")
        if self.dry_run:
            logger.debug(f"[?] {issue.summary}: Dry run: will just print comment:\n{description!r}")
            return test_issue

        comment_id = self.client.add_comment(issue.id, description)
        logger.info(f"[{issue.key}] {summary}: Created comment {comment_id}")
        return test_issue

    def create_issues_or_comments(self, test_cases: Sequence[JiraTestCase]) -> tuple[list[TestIssue], list[Exception]]:
        """File every test case. Failures are collected, not raised."""
        issues = []
        errors: list[Exception] = []
        for tc in test_cases:
            try:
                test_issue = self.create_issue_or_comment(tc)
            except Junit2JiraError as e:
                errors.append(e)
                continue
            if test_issue is not None:
                issues.append(test_issue)
        return issues, errors

    def link_issues(self, issues: Sequence[Issue]) -> list[Exception]:
        """Link every pair of issues with each other."""
        errors: list[Exception] = []
        for x, issue in enumerate(issues):
            for other in issues[:x]:
                # JIRA does not allow linking an issue to itself.
                if issue.key == other.key:
                    continue
                if self.dry_run:
                    logger.debug(f"[{issue.key}] Dry run: would link to {other.key}")
                    continue
                try:
                    self.client.add_link(issue.key, other.key, LINK_TYPE)
                except Junit2JiraError as e:
                    errors.append(e)
                    continue
                logger.debug(f"[{issue.key}] Created link to {other.key}")
        return errors
