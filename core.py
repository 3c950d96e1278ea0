#!/usr/bin/env python3
"""
Core operations shared by the CLI commands.
Contains the business logic for reporting failed tests to JIRA and for the
flake check gate.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from junit2jira.errors import MultiError
from junit2jira.flake_config import load_flake_config_file
from junit2jira.flakechecker import check_failed_tests
from junit2jira.formatting import BuildInfo, FormatOptions, JiraTestCase
from junit2jira.issues import IssueFiler, TestIssue
from junit2jira.jira_client import JiraClient
from junit2jira.models import TestSuite
from junit2jira.outputs import (
    generate_summary,
    open_output,
    render_html,
    write_csv,
    write_slack,
)
from junit2jira.reducer import reduce_failed_tests
from junit2jira.testcase import GO_MODULE_PREFIX, get_failed_tests, load_test_suites

logger = logging.getLogger(__name__)


@dataclass
class Junit2JiraParams:
    junit_reports_dir: str
    jira_url: str
    jira_project: str
    jira_token: str = ""
    build: BuildInfo = field(default_factory=BuildInfo)
    timestamp: str = ""
    threshold: int = 10
    dry_run: bool = False
    csv_output: str = ""
    html_output: str = ""
    slack_output: str = ""
    summary_output: str = ""
    go_module_prefix: str = GO_MODULE_PREFIX
    format_options: FormatOptions = field(default_factory=FormatOptions)


@dataclass
class FlakeCheckerParams:
    junit_reports_dir: str
    config_file: str
    job_name: str
    go_module_prefix: str = GO_MODULE_PREFIX


def get_merged_failed_tests(suites: list[TestSuite], p: Junit2JiraParams) -> list[JiraTestCase]:
    """Failed tests of ``suites``, collapsed into one when above the threshold."""
    failed_tests = get_failed_tests(suites, go_module_prefix=p.go_module_prefix)
    failed_tests = reduce_failed_tests(failed_tests, p.threshold, p.build.job_name, p.format_options)
    return [JiraTestCase.from_test_case(tc, p.build) for tc in failed_tests]


def run_junit2jira(p: Junit2JiraParams, jira_client: Optional[JiraClient] = None) -> list[TestIssue]:
    """
    Report failed tests from JUnit reports to JIRA and write the outputs.

    Ticket and link errors do not stop the run; they are raised together as a
    MultiError once all outputs are written.

    Returns:
        The issues failed tests were reported to.
    """
    client = jira_client or JiraClient(p.jira_url, token=p.jira_token)
    filer = IssueFiler(client, p.jira_project, dry_run=p.dry_run, options=p.format_options)

    suites = load_test_suites(p.junit_reports_dir)

    if p.csv_output:
        with open_output(p.csv_output) as out:
            write_csv(suites, p.build, p.timestamp, out)

    test_cases = get_merged_failed_tests(suites, p)
    test_issues, errors = filer.create_issues_or_comments(test_cases)

    if p.slack_output:
        with open_output(p.slack_output) as out:
            write_slack(test_issues, out)

    jira_issues = [i.issue for i in test_issues if i.issue is not None]
    errors.extend(filer.link_issues(jira_issues))

    if p.summary_output:
        with open_output(p.summary_output) as out:
            generate_summary(test_issues, out)

    if p.html_output and jira_issues:
        with open_output(p.html_output) as out:
            render_html(jira_issues, p.jira_url, out)

    MultiError.raise_if_any(errors)
    return test_issues


def run_flakechecker(p: FlakeCheckerParams, ratio_client=None):
    """Raise a FlakeCheckError unless all failed tests are tolerated flakes."""
    policies = load_flake_config_file(p.config_file)

    suites = load_test_suites(p.junit_reports_dir)
    failed_tests = get_failed_tests(suites, go_module_prefix=p.go_module_prefix)

    if ratio_client is None:
        from junit2jira.bq_client import BigQueryClient
        ratio_client = BigQueryClient()

    check_failed_tests(ratio_client, p.job_name, failed_tests, policies)
    logger.info("All failed tests are within allowed flake thresholds")
