"""BigQuery client for historical test failure ratios."""

import logging
from typing import Optional

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import bigquery

from .config import get_bq_project_id
from .errors import Junit2JiraError
from .flake_config import FlakeDetectionPolicyConfig

logger = logging.getLogger(__name__)

QUERY_TIMEOUT = 60

QUERY_GET_FAILURE_RATIO = """
SELECT
    TotalAll,
    FailRatio
FROM
    `acs-san-stackroxci.ci_metrics.stackrox_tests__recent_flaky_tests`
WHERE
    JobName = @jobName
    AND Classname = @className
    AND Name = @testName
"""


class WarehouseError(Junit2JiraError):
    """Historical test data could not be retrieved."""


class BigQueryClient:
    """Looks up recent run counts and failure ratios of tests."""

    def __init__(self, project_id: Optional[str] = None, client: Optional[bigquery.Client] = None):
        if client is None:
            try:
                client = bigquery.Client(project=project_id or get_bq_project_id())
            except (GoogleAuthError, GoogleAPIError) as e:
                raise WarehouseError(f"creating BigQuery client: {e}") from e
        self.client = client

    def get_ratio_for_test(self, config: FlakeDetectionPolicyConfig, test_name: str) -> tuple[int, int]:
        """Return ``(total_runs, fail_ratio)`` for a test in the policy's ratio job."""
        params = [
            bigquery.ScalarQueryParameter("jobName", "STRING", config.ratio_job_name),
            bigquery.ScalarQueryParameter("className", "STRING", config.class_name),
            bigquery.ScalarQueryParameter("testName", "STRING", test_name),
        ]
        job_config = bigquery.QueryJobConfig(query_parameters=params)
        try:
            job = self.client.query(QUERY_GET_FAILURE_RATIO, job_config=job_config, timeout=QUERY_TIMEOUT)
            rows = list(job.result(timeout=QUERY_TIMEOUT))
        except (GoogleAPIError, TimeoutError) as e:
            raise WarehouseError(f"query data from BigQuery: {e}") from e

        if not rows:
            raise WarehouseError(
                f"no BigQuery result for flaky test for query params: "
                f"{config.ratio_job_name!r} / {config.class_name!r} / {test_name!r}"
            )
        if len(rows) > 1:
            logger.warning(
                f"Expected to find one row in DB, but got {len(rows)} for query params: "
                f"{config.ratio_job_name!r} / {config.class_name!r} / {test_name!r}"
            )

        row = rows[0]
        return int(row["TotalAll"]), int(row["FailRatio"])
