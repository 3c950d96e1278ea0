"""
Extraction of failing tests from a tree of JUnit suites.

Reports are cleaned up before use: known-useless test entries are dropped,
empty names are replaced with fallbacks and suites left empty are removed.
Failing tests are then collected depth-first (child suites before the suite's
own tests), and failing Go subtests (``TestFoo/case``) are folded into their
already collected parent test.
"""

import dataclasses
import logging
from pathlib import Path
from typing import NamedTuple, Optional, Sequence, Union

from .junit_parser import JUnitParser
from .models import FALLBACK_CLASSNAME, FALLBACK_NAME, Test, TestCase, TestSuite

logger = logging.getLogger(__name__)

GO_MODULE_PREFIX = "github.com/stackrox/rox"


class IgnoreEntry(NamedTuple):
    name: str
    classname: str


IGNORE_LIST = [
    # go-junit-report gets confused by the goroutine dump of a crashed go test
    # binary and reports a failure of a non-existent package runtime.MemStats
    # with an empty test name.
    IgnoreEntry(name="", classname="runtime.MemStats"),
]


def load_test_suites(report_dir: Union[str, Path],
                     ignore_list: Optional[Sequence[IgnoreEntry]] = None) -> list[TestSuite]:
    """Load all reports from ``report_dir`` and clean them up."""
    suites = JUnitParser().ingest_dir(report_dir)
    return clear_suites(suites, ignore_list)


def is_ignored(test: Test, ignore_list: Sequence[IgnoreEntry]) -> bool:
    return any(test.name == entry.name and test.classname == entry.classname
               for entry in ignore_list)


def add_fallbacks(tests: Sequence[Test]) -> list[Test]:
    """Return copies of ``tests`` with empty names and classnames filled in."""
    result = []
    for test in tests:
        result.append(dataclasses.replace(
            test,
            name=test.name or FALLBACK_NAME,
            classname=test.classname or FALLBACK_CLASSNAME,
        ))
    return result


def clear_suites(suites: Sequence[TestSuite],
                 ignore_list: Optional[Sequence[IgnoreEntry]] = None) -> list[TestSuite]:
    """Drop ignored tests, add fallbacks and remove suites left empty.

    The input tree is not modified.
    """
    if ignore_list is None:
        ignore_list = IGNORE_LIST

    cleared = []
    for suite in suites:
        children = clear_suites(suite.suites, ignore_list)
        tests = add_fallbacks([t for t in suite.tests if not is_ignored(t, ignore_list)])
        if not children and not tests:
            continue
        cleared.append(dataclasses.replace(suite, suites=children, tests=tests))
    return cleared


def is_subtest(test: Test) -> bool:
    return "/" in test.name


def is_go_test(classname: str, prefix: str = GO_MODULE_PREFIX) -> bool:
    """Whether ``classname`` is a package of the Go module ``prefix``."""
    return classname.startswith(prefix)


def add_test(failed_tests: list[TestCase], test: Test, go_module_prefix: str = GO_MODULE_PREFIX):
    """Append ``test`` to ``failed_tests`` or merge it into its parent test."""
    if is_subtest(test) and is_go_test(test.classname, go_module_prefix):
        parent_name = test.name.split("/", 1)[0]
        for failed_test in failed_tests:
            # Parent must match by name _and_ class, otherwise unrelated tests
            # from other packages would be merged.
            if failed_test.name == parent_name and failed_test.classname == test.classname:
                failed_test.add_subtest(test)
                return
    failed_tests.append(TestCase.from_test(test))


def _add_failed_tests(suite: TestSuite, failed_tests: list[TestCase], go_module_prefix: str):
    for child in suite.suites:
        _add_failed_tests(child, failed_tests, go_module_prefix)
    for test in suite.tests:
        if test.error is None:
            continue
        add_test(failed_tests, test, go_module_prefix)


def get_failed_tests(suites: Sequence[TestSuite],
                     go_module_prefix: str = GO_MODULE_PREFIX,
                     ignore_list: Optional[Sequence[IgnoreEntry]] = None) -> list[TestCase]:
    """Collect failing tests of ``suites`` in report order."""
    failed_tests: list[TestCase] = []
    for suite in clear_suites(suites, ignore_list):
        _add_failed_tests(suite, failed_tests, go_module_prefix)
    logger.info(f"Found {len(failed_tests)} failed tests")
    return failed_tests
