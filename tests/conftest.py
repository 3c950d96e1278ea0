import pytest

from junit2jira.errors import JiraError
from junit2jira.jira_client import Issue

GO_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testsuites>
  <testsuite name="github.com/stackrox/rox/pkg/booleanpolicy/evaluator" tests="4" failures="3">
    <testcase classname="github.com/stackrox/rox/pkg/booleanpolicy/evaluator" name="TestDifferentBaseTypes" time="0.010">
      <failure message="Failed" type="">Failed</failure>
    </testcase>
    <testcase classname="github.com/stackrox/rox/pkg/booleanpolicy/evaluator" name="TestDifferentBaseTypes/base_ts" time="0.000">
      <failure message="Failed" type="">sub failure</failure>
    </testcase>
    <testcase classname="github.com/stackrox/rox/pkg/booleanpolicy/evaluator" name="TestDifferentBaseTypes/base_ts/on_object" time="0.000">
      <failure message="" type="">deep failure</failure>
    </testcase>
    <testcase classname="github.com/stackrox/rox/pkg/booleanpolicy/evaluator" name="TestPasses" time="1.5"></testcase>
  </testsuite>
  <testsuite name="runtime" tests="1" failures="1">
    <testcase classname="runtime.MemStats" name="" time="0">
      <failure message="Failed" type="">crash dump</failure>
    </testcase>
  </testsuite>
</testsuites>
"""

GRADLE_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testsuite name="DefaultPoliciesTest" tests="3" skipped="1" failures="1" errors="0">
  <testcase name="Verify policy Latest tag is triggered" classname="DefaultPoliciesTest" time="0.117"/>
  <testcase name="Verify policy Apache Struts: CVE-2017-5638 is triggered" classname="DefaultPoliciesTest" time="264.995">
    <failure message="Condition not satisfied" type="org.spockframework.runtime.ConditionNotSatisfiedError">stack trace</failure>
    <system-out>some output</system-out>
  </testcase>
  <testcase name="Verify that Kubernetes Dashboard violation is generated" classname="DefaultPoliciesTest" time="0.0">
    <skipped/>
  </testcase>
</testsuite>
"""


@pytest.fixture
def reports_dir(tmp_path):
    d = tmp_path / "reports"
    (d / "go").mkdir(parents=True)
    (d / "go" / "report.xml").write_text(GO_REPORT)
    (d / "TEST-DefaultPoliciesTest.xml").write_text(GRADLE_REPORT)
    (d / "notes.txt").write_text("not a report")
    return d


class FakeJiraClient:
    """In-memory stand-in for JiraClient."""

    def __init__(self, existing=None, fail_create_for=()):
        self.existing = list(existing or [])
        self.fail_create_for = set(fail_create_for)
        self.created = []
        self.comments = []
        self.links = []
        self.queries = []

    def search(self, jql):
        self.queries.append(jql)
        return list(self.existing)

    def create_issue(self, issue):
        if issue.summary in self.fail_create_for:
            raise JiraError(f"could not create issue {issue.summary}", status_code=400)
        issue.key = f"ROX-{100 + len(self.created)}"
        issue.id = str(1000 + len(self.created))
        self.created.append(issue)
        return issue

    def add_comment(self, issue_id, body):
        self.comments.append((issue_id, body))
        return "c1"

    def add_link(self, outward_key, inward_key, link_type="Related"):
        self.links.append((outward_key, inward_key, link_type))


@pytest.fixture
def fake_jira():
    return FakeJiraClient()


def make_issue(key, summary="", issue_id=""):
    return Issue(key=key, id=issue_id or key, summary=summary)
