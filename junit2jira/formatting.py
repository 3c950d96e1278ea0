"""Rendering of failing tests into JIRA summaries and descriptions."""

from dataclasses import dataclass, field

from jinja2 import Environment, StrictUndefined

from .models import TestCase

TRUNCATED_SUFFIX = "\n … too long, truncated."

DESCRIPTION_TEMPLATE = """
{%- if message %}
{code:title=Message|borderStyle=solid}
{{ message | truncate_block(max_length) }}
{code}
{%- endif %}
{%- if stderr %}
{code:title=STDERR|borderStyle=solid}
{{ stderr | truncate_block(max_length) }}
{code}
{%- endif %}
{%- if stdout %}
{code:title=STDOUT|borderStyle=solid}
{{ stdout | truncate_block(max_length) }}
{code}
{%- endif %}
{%- if error %}
{code:title=ERROR|borderStyle=solid}
{{ error | truncate_block(max_length) }}
{code}
{%- endif %}

||    ENV     ||      Value           ||
| BUILD ID     | [{{- build_id -}}|{{- build_link -}}]|
| BUILD TAG    | [{{- build_tag -}}|{{- base_link -}}]|
| JOB NAME     | {{- job_name -}}      |
| ORCHESTRATOR | {{- orchestrator -}} |
"""


@dataclass(frozen=True)
class FormatOptions:
    """Length limits applied when rendering tickets."""
    max_summary_length: int = 200
    max_text_block_length: int = 10000


@dataclass
class BuildInfo:
    """CI build the reports were produced by."""
    build_id: str = ""
    job_name: str = ""
    orchestrator: str = ""
    build_tag: str = ""
    base_link: str = ""
    build_link: str = ""


def truncate(text: str, max_length: int) -> str:
    if len(text) > max_length:
        return text[:max_length] + TRUNCATED_SUFFIX
    return text


def truncate_summary(text: str, max_length: int) -> str:
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


def clear_string(text: str) -> str:
    """Replace everything but letters, digits and ``./-_`` with spaces."""
    return "".join(
        ch if ch.isalpha() or ch.isdecimal() or ch in "./-_" else " "
        for ch in text
    )


def summary_line(suite: str, name: str, options: FormatOptions = FormatOptions()) -> str:
    text = truncate_summary(f"{suite} / {name}", options.max_summary_length)
    return clear_string(f"{text} FAILED")


_env = Environment(undefined=StrictUndefined, keep_trailing_newline=True)
_env.filters["truncate_block"] = truncate
_description = _env.from_string(DESCRIPTION_TEMPLATE)


@dataclass
class JiraTestCase:
    """A failing test together with the build it failed in."""
    name: str = ""
    suite: str = ""
    message: str = ""
    stdout: str = ""
    stderr: str = ""
    error: str = ""
    build: BuildInfo = field(default_factory=BuildInfo)

    @classmethod
    def from_test_case(cls, test_case: TestCase, build: BuildInfo) -> "JiraTestCase":
        return cls(
            name=test_case.name,
            suite=test_case.suite,
            message=test_case.message,
            stdout=test_case.stdout,
            stderr=test_case.stderr,
            error=test_case.error,
            build=build,
        )

    def summary(self, options: FormatOptions = FormatOptions()) -> str:
        return summary_line(self.suite, self.name, options)

    def description(self, options: FormatOptions = FormatOptions()) -> str:
        return _description.render(
            message=self.message,
            stdout=self.stdout,
            stderr=self.stderr,
            error=self.error,
            max_length=options.max_text_block_length,
            build_id=self.build.build_id,
            build_link=self.build.build_link,
            build_tag=self.build.build_tag,
            base_link=self.build.base_link,
            job_name=self.build.job_name,
            orchestrator=self.build.orchestrator,
        )
