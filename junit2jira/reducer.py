"""Collapsing of mass failures into a single report."""

import logging
from typing import Sequence

from .formatting import FormatOptions, summary_line
from .models import TestCase

logger = logging.getLogger(__name__)


def reduce_failed_tests(failed_tests: Sequence[TestCase], threshold: int, job_name: str,
                        options: FormatOptions = FormatOptions()) -> list[TestCase]:
    """Report more than ``threshold`` failures as one synthetic test case.

    The synthetic case lists the summary line of every failure. Its suite is
    the common suite of all failures, or ``job_name`` when they differ. A
    threshold of zero or less disables the reduction.
    """
    if threshold <= 0 or len(failed_tests) <= threshold:
        return list(failed_tests)

    logger.warning("Too many failed tests, reporting them as a one failure.")
    suite = failed_tests[0].suite
    if any(t.suite != suite for t in failed_tests):
        suite = job_name

    message = "".join(summary_line(t.suite, t.name, options) + "\n" for t in failed_tests)
    return [TestCase(classname=suite, message=message)]
