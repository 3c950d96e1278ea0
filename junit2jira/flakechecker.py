"""
Gate that lets CI pass when every failed test is a known, tolerated flake.

Each failed test must match a flake detection policy, have enough recent
history in the metrics warehouse and a failure ratio within the policy's
threshold. The first test that does not qualify fails the whole check.
"""

import logging
from typing import Sequence

from .errors import (
    AboveThresholdError,
    NoFailedTestsError,
    RatioLookupError,
    ShortHistoryError,
)
from .flake_config import FlakeDetectionPolicy, find_flake_config_for_test
from .models import TestCase

logger = logging.getLogger(__name__)

MIN_HISTORICAL_RUNS = 30


def check_failed_tests(ratio_client, job_name: str, failed_tests: Sequence[TestCase],
                       policies: Sequence[FlakeDetectionPolicy]):
    """Raise a FlakeCheckError unless all ``failed_tests`` are allowed flakes.

    ``ratio_client`` provides ``get_ratio_for_test(config, test_name)``
    returning ``(total_runs, fail_ratio)``.
    """
    if not failed_tests:
        raise NoFailedTestsError()

    for failed_test in failed_tests:
        logger.info(f"Checking failed test: {job_name!r} / {failed_test.classname!r} / {failed_test.name!r}")
        policy = find_flake_config_for_test(policies, job_name, failed_test.classname, failed_test.name)
        config = policy.config
        logger.info(f"Match found: {config.job_name_regex!r} / {config.class_name!r} / {config.test_name_regex!r}")

        try:
            total_runs, fail_ratio = ratio_client.get_ratio_for_test(config, failed_test.name)
        except Exception as e:
            raise RatioLookupError(str(e)) from e

        if total_runs < MIN_HISTORICAL_RUNS:
            raise ShortHistoryError(str(total_runs))

        if fail_ratio > config.ratio_threshold:
            raise AboveThresholdError(f"({fail_ratio} > {config.ratio_threshold})")

        logger.info(
            f"Failed test: {job_name!r} / {failed_test.classname!r} / {failed_test.name!r} - "
            f"will be suppressed because failure rate is below allowed threshold: "
            f"({fail_ratio} <= {config.ratio_threshold})"
        )
