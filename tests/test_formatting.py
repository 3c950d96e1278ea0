import pytest

from junit2jira.formatting import (
    BuildInfo,
    FormatOptions,
    JiraTestCase,
    clear_string,
    truncate,
)
from junit2jira.models import TestCase

MESSAGE = (
    "Condition not satisfied:\n"
    "\n"
    "waitForViolation(deploymentName,  policyName, 60)\n"
    "|                |                |\n"
    "false            qadefpolstruts   Apache Struts: CVE-2017-5638\n"
)

STDOUT = (
    "21:35:15 | INFO  | DefaultPoliciesTest       | Starting testcase\n"
    "21:36:16 | INFO  | Services                  | Failed to trigger Apache Struts: CVE-2017-5638 after waiting 60 seconds\n"
    "org.spockframework.runtime.ConditionNotSatisfiedError: Condition not satisfied:\n"
)

BUILD = BuildInfo(build_id="1", build_link="https://prow.ci.openshift.org/view/gs/origin-ci-test/logs/1")


@pytest.fixture
def struts_case():
    return JiraTestCase(
        name="Verify policy Apache Struts: CVE-2017-5638 is triggered",
        suite="DefaultPoliciesTest",
        message=MESSAGE,
        stdout=STDOUT,
        build=BUILD,
    )


def test_description(struts_case):
    assert struts_case.description() == (
        "\n"
        "{code:title=Message|borderStyle=solid}\n"
        f"{MESSAGE}\n"
        "{code}\n"
        "{code:title=STDOUT|borderStyle=solid}\n"
        f"{STDOUT}\n"
        "{code}\n"
        "\n"
        "||    ENV     ||      Value           ||\n"
        "| BUILD ID     | [1|https://prow.ci.openshift.org/view/gs/origin-ci-test/logs/1]|\n"
        "| BUILD TAG    | [|]|\n"
        "| JOB NAME     ||\n"
        "| ORCHESTRATOR ||\n"
    )


def test_description_all_blocks_and_build_fields():
    tc = JiraTestCase(
        name="n", suite="s", message="m", stdout="o", stderr="e", error="x",
        build=BuildInfo(build_id="7", job_name="job", orchestrator="gke", build_tag="4.5.0",
                        base_link="https://github.com/x/y/tree/4.5.0", build_link="https://ci/7"),
    )

    assert tc.description() == (
        "\n"
        "{code:title=Message|borderStyle=solid}\nm\n{code}\n"
        "{code:title=STDERR|borderStyle=solid}\ne\n{code}\n"
        "{code:title=STDOUT|borderStyle=solid}\no\n{code}\n"
        "{code:title=ERROR|borderStyle=solid}\nx\n{code}\n"
        "\n"
        "||    ENV     ||      Value           ||\n"
        "| BUILD ID     | [7|https://ci/7]|\n"
        "| BUILD TAG    | [4.5.0|https://github.com/x/y/tree/4.5.0]|\n"
        "| JOB NAME     |job|\n"
        "| ORCHESTRATOR |gke|\n"
    )


def test_description_without_blocks():
    assert JiraTestCase(name="n").description().startswith("\n\n||    ENV     ||")


def test_description_truncated(struts_case):
    description = struts_case.description(FormatOptions(max_text_block_length=100))

    assert (
        "{code:title=Message|borderStyle=solid}\n"
        f"{MESSAGE[:100]}\n … too long, truncated.\n"
        "{code}\n"
    ) in description
    assert f"{STDOUT[:100]}\n … too long, truncated.\n{{code}}" in description


def test_description_is_not_html_escaped():
    tc = JiraTestCase(name="n", message="a < b && c > d")
    assert "a < b && c > d" in tc.description()


def test_summary(struts_case):
    assert struts_case.summary() == "DefaultPoliciesTest / Verify policy Apache Struts  CVE-2017-5638 is triggered FAILED"


def test_summary_truncated(struts_case):
    assert struts_case.summary(FormatOptions(max_summary_length=20)) == "DefaultPoliciesTest ... FAILED"


@pytest.mark.parametrize("text,expected", [
    ("plain", "plain"),
    ("pkg/sub.Test_name-1", "pkg/sub.Test_name-1"),
    ('quote " and: colon', "quote   and  colon"),
    ("[brackets] (parens)", " brackets   parens "),
    ("żółć", "żółć"),
])
def test_clear_string(text, expected):
    assert clear_string(text) == expected


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("0123456789", 10) == "0123456789"
    assert truncate("0123456789a", 10) == "0123456789\n … too long, truncated."


def test_from_test_case_uses_classname_as_suite():
    tc = JiraTestCase.from_test_case(
        TestCase(name="TestFoo", classname="github.com/stackrox/rox/pkg", error="boom"),
        BUILD,
    )

    assert tc.suite == "github.com/stackrox/rox/pkg"
    assert tc.error == "boom"
    assert tc.build is BUILD
