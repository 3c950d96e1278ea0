"""
Data models for JUnit reports and failing test aggregates.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

FALLBACK_NAME = "fallback-name"
FALLBACK_CLASSNAME = "fallback-classname"

SUB_TEST_FORMAT = "\nSub test {name}: {text}"


class TestStatus(Enum):
    """Status of a single test execution."""
    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class JUnitError:
    """Body of a <failure> or <error> element."""
    message: str = ""
    type: str = ""
    body: str = ""

    def __str__(self) -> str:
        return self.body


@dataclass
class Test:
    """A single <testcase> as read from a report."""
    __test__ = False

    name: str
    classname: str
    status: TestStatus = TestStatus.PASSED
    duration_seconds: float = 0.0
    message: str = ""
    error: Optional[JUnitError] = None
    system_out: str = ""
    system_err: str = ""

    @property
    def duration_ms(self) -> int:
        return int(round(self.duration_seconds * 1000))


@dataclass
class TestSuite:
    """A <testsuite> node, possibly containing nested suites."""
    __test__ = False

    name: str = ""
    package: str = ""
    suites: list["TestSuite"] = field(default_factory=list)
    tests: list[Test] = field(default_factory=list)
    system_out: str = ""
    system_err: str = ""

    def walk_tests(self):
        """Yield every test of the tree, child suites first."""
        for suite in self.suites:
            yield from suite.walk_tests()
        yield from self.tests


@dataclass
class TestCase:
    """One failing test, possibly merged with the failures of its subtests."""
    __test__ = False

    name: str = ""
    classname: str = ""
    message: str = ""
    stdout: str = ""
    stderr: str = ""
    error: str = ""

    def __post_init__(self):
        if not self.name:
            self.name = FALLBACK_NAME
        if not self.classname:
            self.classname = FALLBACK_CLASSNAME

    @property
    def suite(self) -> str:
        return self.classname

    @classmethod
    def from_test(cls, test: Test) -> "TestCase":
        return cls(
            name=test.name,
            classname=test.classname,
            message=test.message,
            stdout=test.system_out,
            stderr=test.system_err,
            error=str(test.error) if test.error is not None else "",
        )

    def add_subtest(self, subtest: Test):
        """Append the diagnostics of a failing subtest to this test case."""
        if subtest.message:
            self.message += SUB_TEST_FORMAT.format(name=subtest.name, text=subtest.message)
        if subtest.system_out:
            self.stdout += SUB_TEST_FORMAT.format(name=subtest.name, text=subtest.system_out)
        if subtest.system_err:
            self.stderr += SUB_TEST_FORMAT.format(name=subtest.name, text=subtest.system_err)
        if subtest.error is not None and str(subtest.error):
            self.error += SUB_TEST_FORMAT.format(name=subtest.name, text=str(subtest.error))
