"""
CSV, HTML, Slack and JSON summary outputs.

Every output is optional: an empty path disables it and ``-`` writes to
standard output.
"""

import csv
import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .formatting import BuildInfo, JiraTestCase
from .issues import TestIssue
from .jira_client import Issue
from .models import TestSuite

logger = logging.getLogger(__name__)

TEMPLATES_PATH = Path(__file__).parent / "templates"
HTML_TEMPLATE = "html_output.html.j2"

CSV_HEADER = ["BuildId", "Timestamp", "Classname", "Name", "Duration", "Status", "JobName", "BuildTag"]

# Slack limits: 150 characters for header text, 3000 for other text objects.
SLACK_HEADER_TEXT_LENGTH_LIMIT = 150
SLACK_TEXT_LENGTH_LIMIT = 3000
SLACK_MAX_FAILURE_ATTACHMENTS = 4
SLACK_FAILURE_COLOR = "#bb2124"


@contextmanager
def open_output(path: str) -> Iterator[IO[str]]:
    """Open ``path`` for writing, ``-`` meaning standard output."""
    if path == "-":
        yield sys.stdout
        sys.stdout.flush()
        return
    with open(path, "w", encoding="utf-8", newline="") as handle:
        yield handle


def write_csv(suites: Sequence[TestSuite], build: BuildInfo, timestamp: str, out: IO[str]):
    """Write one row per test of ``suites``, child suites first."""
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for suite in suites:
        for test in suite.walk_tests():
            writer.writerow([
                build.build_id,
                timestamp,
                test.classname,
                test.name,
                str(test.duration_ms),
                test.status.value,
                build.job_name,
                build.build_tag,
            ])


def render_html(issues: Sequence[Issue], jira_url: str, out: IO[str]):
    env = Environment(
        loader=FileSystemLoader(TEMPLATES_PATH),
        undefined=StrictUndefined,
        autoescape=select_autoescape(["html", "j2"]),
        keep_trailing_newline=True,
    )
    content = env.get_template(HTML_TEMPLATE).render(
        issues=issues,
        jira_url=jira_url.rstrip("/"),
    )
    out.write(content)


def generate_summary(test_issues: Sequence[TestIssue], out: IO[str]):
    new_jiras = sum(1 for i in test_issues if i.new_jira)
    out.write(json.dumps({"newJIRAs": new_jiras}, separators=(",", ":")))


def crop(text: str, limit: int) -> str:
    if len(text) < limit:
        return text
    return text[:limit - 1] + "…"


def _text(kind: str, text: str) -> dict:
    return {"type": kind, "text": text}


def _section(kind: str, text: str) -> dict:
    return {"type": "section", "text": _text(kind, text)}


def _header(text: str) -> dict:
    return {"type": "header", "text": _text("plain_text", text)}


def failure_to_blocks(title: str, message: str, value: str) -> list[dict]:
    if not message and not value:
        return []

    header = _header(title)
    if not message:
        return [
            header,
            _section("mrkdwn", "*Info*"),
            _section("plain_text", value),
        ]

    blocks = [
        header,
        _section("mrkdwn", "*Message*"),
        _section("plain_text", message),
    ]
    if value:
        blocks.extend([
            _section("mrkdwn", "*Additional Info*"),
            _section("plain_text", value),
        ])
    return blocks


def failure_to_attachment(title: str, tc: JiraTestCase) -> Optional[dict]:
    message = tc.message
    value = "" if tc.error == tc.message else tc.error
    if not message and not value:
        return None

    return {
        "color": SLACK_FAILURE_COLOR,
        "blocks": failure_to_blocks(
            title,
            crop(message, SLACK_TEXT_LENGTH_LIMIT),
            crop(value, SLACK_TEXT_LENGTH_LIMIT),
        ),
    }


def convert_to_slack(test_issues: Sequence[TestIssue]) -> list[dict]:
    """Build Slack attachments: an overview of failed tests plus a few details."""
    title_blocks = []
    attachments = []

    for test_issue in test_issues:
        tc = test_issue.test_case
        title = f"{tc.suite}: {tc.name}" if tc.suite else tc.name
        if test_issue.issue is not None:
            title = f"{test_issue.issue.key}: {title}"
        title = crop(title, SLACK_HEADER_TEXT_LENGTH_LIMIT)

        title_blocks.append(_section("plain_text", title))

        attachment = failure_to_attachment(title, tc)
        if attachment is None:
            logger.info(f"skipping {tc.name}: no junit failure message or error for {title}")
            continue
        attachments.append(attachment)

        if len(attachments) >= SLACK_MAX_FAILURE_ATTACHMENTS:
            break

    if not title_blocks:
        return []

    overview = {
        "color": SLACK_FAILURE_COLOR,
        "blocks": [_header("Failed tests")] + title_blocks,
    }
    return [overview] + attachments


def write_slack(test_issues: Sequence[TestIssue], out: IO[str]):
    out.write(json.dumps(convert_to_slack(test_issues)))
