"""
Job status reporter: best-effort write of one JobStatusRecord per task.

Reporting is advisory. Failures are logged and never change the outcome the
orchestrator recorded for the task; no retries.
"""

from __future__ import annotations

from typing import Optional

import requests

from shared.http import describe_response, is_success
from shared.logging import get_logger
from worker.errors import ReportError
from worker.models import JobStatusRecord

logger = get_logger(__name__)


class JobStatusReporter:
    """POST status records as JSON to the job registry."""

    def __init__(
        self,
        endpoint: Optional[str],
        session: requests.Session,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.endpoint = endpoint
        self.session = session
        self.timeout_seconds = timeout_seconds

    def _send(self, record: JobStatusRecord) -> None:
        try:
            response = self.session.post(
                self.endpoint,
                json=record.to_payload(),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            raise ReportError(f"Status write failed: {e}") from e
        if not is_success(response):
            raise ReportError(f"Status write rejected: {describe_response(response)}")

    def report(self, record: JobStatusRecord) -> bool:
        """
        Write the record. Returns True if the registry accepted it.

        Never raises; a reporter without an endpoint logs and returns False.
        """
        if not self.endpoint:
            logger.warning("status_report_skipped", reason="no_endpoint", r2_key=record.artifact_key)
            return False
        try:
            self._send(record)
        except ReportError as e:
            logger.warning(
                "status_report_failed",
                job_status=record.status,
                r2_key=record.artifact_key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        logger.info("status_reported", job_status=record.status, r2_key=record.artifact_key)
        return True
