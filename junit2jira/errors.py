"""Exceptions raised by junit2jira and the flake checker."""

from typing import Optional


class Junit2JiraError(Exception):
    """Base class for all errors reported by the CLI."""


class ConfigError(Junit2JiraError):
    """Flake policy configuration could not be loaded."""


class ReportError(Junit2JiraError):
    """JUnit reports could not be read."""


class FlakeCheckError(Junit2JiraError):
    """A failed test could not be suppressed as a known flake."""
    description = "flake check failed"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(f"{self.description}: {detail}" if detail else self.description)


class NoFailedTestsError(FlakeCheckError):
    description = "no failed tests to process"


class NoMatchError(FlakeCheckError):
    description = "test does not match any allowed flakes"


class RatioLookupError(FlakeCheckError):
    description = "retrieving ratio for test failed"


class ShortHistoryError(FlakeCheckError):
    description = "not enough historical test runs to compute flakiness"


class AboveThresholdError(FlakeCheckError):
    description = "flake ratio for test is above allowed threshold"


class JiraError(Junit2JiraError):
    """A JIRA REST call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"{message} (status {status_code})" if status_code else message)


class MultiError(Junit2JiraError):
    """Several independent failures collected while processing a batch."""

    def __init__(self, errors: list[Exception]):
        self.errors = list(errors)
        lines = [f"{len(self.errors)} errors occurred:"]
        lines.extend(f"\t* {e}" for e in self.errors)
        super().__init__("\n".join(lines))

    @classmethod
    def raise_if_any(cls, errors: list[Exception]):
        if errors:
            raise cls(errors)
