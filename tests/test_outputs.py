import io
import json

import pytest

from junit2jira.formatting import BuildInfo, JiraTestCase
from junit2jira.issues import TestIssue
from junit2jira.models import Test, TestStatus, TestSuite
from junit2jira.outputs import (
    convert_to_slack,
    crop,
    failure_to_blocks,
    generate_summary,
    open_output,
    render_html,
    write_csv,
    write_slack,
)

from conftest import make_issue


def test_csv_output():
    suites = [TestSuite(
        name="DefaultPoliciesTest",
        suites=[TestSuite(tests=[Test(name="child", classname="Inner", duration_seconds=0.5)])],
        tests=[
            Test(name="Verify policy Latest tag", classname="DefaultPoliciesTest", duration_seconds=0.117),
            Test(name='Verify "quoted", name', classname="DefaultPoliciesTest",
                 status=TestStatus.FAILED, duration_seconds=264.995),
            Test(name="Skipped", classname="DefaultPoliciesTest", status=TestStatus.SKIPPED),
        ],
    )]
    build = BuildInfo(build_id="1", job_name="comma ,", build_tag="0.0.0")
    out = io.StringIO()

    write_csv(suites, build, "time", out)

    assert out.getvalue() == (
        "BuildId,Timestamp,Classname,Name,Duration,Status,JobName,BuildTag\n"
        '1,time,Inner,child,500,passed,"comma ,",0.0.0\n'
        '1,time,DefaultPoliciesTest,Verify policy Latest tag,117,passed,"comma ,",0.0.0\n'
        '1,time,DefaultPoliciesTest,"Verify ""quoted"", name",264995,failed,"comma ,",0.0.0\n'
        '1,time,DefaultPoliciesTest,Skipped,0,skipped,"comma ,",0.0.0\n'
    )


def test_csv_output_without_tests():
    out = io.StringIO()
    write_csv([], BuildInfo(), "", out)
    assert out.getvalue() == "BuildId,Timestamp,Classname,Name,Duration,Status,JobName,BuildTag\n"


def test_html_output():
    out = io.StringIO()
    issues = [make_issue("ROX-1", "pkg / TestA FAILED"), make_issue("ROX-2", "<b>escaped</b>")]

    render_html(issues, "https://issues.redhat.com/", out)

    html = out.getvalue()
    assert '<a href="https://issues.redhat.com/browse/ROX-1">ROX-1</a>: pkg / TestA FAILED' in html
    assert '<a href="https://issues.redhat.com/browse/ROX-2">ROX-2</a>: &lt;b&gt;escaped&lt;/b&gt;' in html
    assert html.index("ROX-1") < html.index("ROX-2")


def test_summary_output():
    tc = JiraTestCase(name="t")
    no_new = [TestIssue(issue=make_issue("ROX-1"), test_case=tc)]
    some_new = no_new + [
        TestIssue(issue=make_issue("ROX-2"), test_case=tc, new_jira=True),
        TestIssue(issue=make_issue("ROX-3"), test_case=tc, new_jira=True),
    ]

    out = io.StringIO()
    generate_summary(no_new, out)
    assert out.getvalue() == '{"newJIRAs":0}'

    out = io.StringIO()
    generate_summary(some_new, out)
    assert out.getvalue() == '{"newJIRAs":2}'


def test_open_output_dash_is_stdout(capsys):
    with open_output("-") as out:
        out.write("hello")
    assert capsys.readouterr().out == "hello"


def test_open_output_file(tmp_path):
    path = tmp_path / "out.csv"
    with open_output(str(path)) as out:
        out.write("a\n")
    assert path.read_text() == "a\n"


@pytest.mark.parametrize("text,limit,expected", [
    ("short", 10, "short"),
    ("exactly10!", 10, "exactly10…"),
    ("much longer text", 5, "much…"),
])
def test_crop(text, limit, expected):
    assert crop(text, limit) == expected


def test_failure_to_blocks():
    assert failure_to_blocks("title", "", "") == []

    info_only = failure_to_blocks("title", "", "value")
    assert [b["type"] for b in info_only] == ["header", "section", "section"]
    assert info_only[1]["text"] == {"type": "mrkdwn", "text": "*Info*"}
    assert info_only[2]["text"] == {"type": "plain_text", "text": "value"}

    both = failure_to_blocks("title", "message", "value")
    assert [b["text"]["text"] for b in both] == ["title", "*Message*", "message", "*Additional Info*", "value"]

    message_only = failure_to_blocks("title", "message", "")
    assert [b["text"]["text"] for b in message_only] == ["title", "*Message*", "message"]


def test_slack_output_empty():
    assert convert_to_slack([]) == []

    out = io.StringIO()
    write_slack([], out)
    assert json.loads(out.getvalue()) == []


def test_slack_output():
    test_issues = [
        TestIssue(issue=make_issue("ROX-1"), test_case=JiraTestCase(
            name="TestA", suite="pkg/a", message="boom", error="boom")),
        TestIssue(issue=None, test_case=JiraTestCase(name="TestB", suite="", error="trace")),
        TestIssue(issue=make_issue("ROX-3"), test_case=JiraTestCase(name="TestC", suite="pkg/c")),
    ]

    overview, first, second = convert_to_slack(test_issues)

    assert overview["color"] == "#bb2124"
    assert [b["text"]["text"] for b in overview["blocks"]] == [
        "Failed tests",
        "ROX-1: pkg/a: TestA",
        "TestB",
        "ROX-3: pkg/c: TestC",
    ]
    # the error equal to the message is not repeated
    assert [b["text"]["text"] for b in first["blocks"]] == ["ROX-1: pkg/a: TestA", "*Message*", "boom"]
    assert [b["text"]["text"] for b in second["blocks"]] == ["TestB", "*Info*", "trace"]


def test_slack_output_limits_attachments():
    test_issues = [
        TestIssue(issue=None, test_case=JiraTestCase(name=f"Test{i}", suite="s", message="m" * 4000))
        for i in range(6)
    ]

    attachments = convert_to_slack(test_issues)

    assert len(attachments) == 5
    assert len(attachments[0]["blocks"]) == 5
    assert attachments[1]["blocks"][2]["text"]["text"] == "m" * 2999 + "…"


def test_slack_title_is_cropped():
    tc = JiraTestCase(name="T" * 200, suite="s", message="m")

    [overview, attachment] = convert_to_slack([TestIssue(issue=None, test_case=tc)])

    title = overview["blocks"][1]["text"]["text"]
    assert len(title) == 150
    assert title.endswith("…")
    assert attachment["blocks"][0]["text"]["text"] == title
