#!/usr/bin/env python3
"""CLI for junit2jira: report failed JUnit tests to JIRA and gate on known flakes."""

import argparse
import logging
import sys
from datetime import datetime, timezone

import requests

import core
from junit2jira.config import (
    get_artifact_dir,
    get_jira_project,
    get_jira_token,
    get_jira_url,
)
from junit2jira.errors import Junit2JiraError
from junit2jira.formatting import BuildInfo

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)s: %(message)s'
    )


def cmd_report(args):
    """Create JIRA issues or comments for failed tests and write outputs."""
    if not args.junit_reports_dir:
        print("Error: provide --junit-reports-dir or set ARTIFACT_DIR", file=sys.stderr)
        return 1

    params = core.Junit2JiraParams(
        junit_reports_dir=args.junit_reports_dir,
        jira_url=args.jira_url,
        jira_project=args.jira_project,
        jira_token=get_jira_token(),
        build=BuildInfo(
            build_id=args.build_id,
            job_name=args.job_name,
            orchestrator=args.orchestrator,
            build_tag=args.build_tag,
            base_link=args.base_link,
            build_link=args.build_link,
        ),
        timestamp=args.timestamp,
        threshold=args.threshold,
        dry_run=args.dry_run,
        csv_output=args.csv_output,
        html_output=args.html_output,
        slack_output=args.slack_output,
        summary_output=args.summary_output,
    )
    test_issues = core.run_junit2jira(params)
    logger.info(f"Reported failed tests to {len(test_issues)} issues")
    return 0


def cmd_flakecheck(args):
    """Fail unless all failed tests are known flakes within their allowed ratio."""
    if not args.junit_reports_dir:
        print("Error: provide --junit-reports-dir or set ARTIFACT_DIR", file=sys.stderr)
        return 1
    if not args.config_file:
        print("Error: provide --config-file", file=sys.stderr)
        return 1

    params = core.FlakeCheckerParams(
        junit_reports_dir=args.junit_reports_dir,
        config_file=args.config_file,
        job_name=args.job_name,
    )
    core.run_flakechecker(params)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Convert JUnit reports into CI triage artifacts')
    parser.add_argument('-v', '--verbose', '--debug', action='store_true', help='Enable debug log level')

    sub = parser.add_subparsers(dest='command')

    # report (junit2jira)
    p = sub.add_parser('report', help='Report failed tests to JIRA and write CSV/HTML/Slack/summary outputs')
    p.add_argument('--junit-reports-dir', default=get_artifact_dir(),
                   help='Dir that contains jUnit reports XML files (default: $ARTIFACT_DIR)')
    p.add_argument('--jira-url', default=get_jira_url(), help='Url of JIRA instance')
    p.add_argument('--jira-project', default=get_jira_project(), help='The JIRA project for issues')
    p.add_argument('--dry-run', action='store_true', help='When set issues will NOT be created')
    p.add_argument('--threshold', type=int, default=10,
                   help='Number of reported failures that should cause single issue creation')
    p.add_argument('--timestamp', default=datetime.now(timezone.utc).isoformat(timespec='seconds'),
                   help='Timestamp of CI test')
    p.add_argument('--base-link', default='', help='Link to source code at the exact version under test')
    p.add_argument('--build-id', default='', help='Build job run ID')
    p.add_argument('--build-link', default='', help='Link to build job')
    p.add_argument('--build-tag', default='', help='Built tag or revision')
    p.add_argument('--job-name', default='', help='Name of CI job')
    p.add_argument('--orchestrator', default='', help='Orchestrator name (such as GKE or OpenShift), if any')
    p.add_argument('--csv-output', default='', help='Convert XML to a CSV file (use dash [-] for stdout)')
    p.add_argument('--html-output', default='', help='Generate HTML report to this file (use dash [-] for stdout)')
    p.add_argument('--slack-output', default='',
                   help='Generate JSON output in slack format (use dash [-] for stdout)')
    p.add_argument('--summary-output', default='',
                   help='Write a summary in JSON to this file (use dash [-] for stdout)')

    # flakecheck (flakechecker)
    p = sub.add_parser('flakecheck', help='Pass only if all failed tests are allowed flakes')
    p.add_argument('--junit-reports-dir', default=get_artifact_dir(),
                   help='Directory containing JUnit report XML files (default: $ARTIFACT_DIR)')
    p.add_argument('--config-file', default='', help='Config file with allowed flakes')
    p.add_argument('--job-name', default='', help='Name of CI job')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    cmds = {
        'report': cmd_report,
        'flakecheck': cmd_flakecheck,
    }
    try:
        return cmds[args.command](args)
    except (Junit2JiraError, requests.RequestException) as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
