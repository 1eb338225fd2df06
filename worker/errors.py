"""
Error taxonomy for batch runs and failure classification for task logs.

Only FetchConfigError and LaunchError may escape the orchestrator; every
other error is absorbed at the task boundary (capture, publish) or in the
best-effort status reporter.
"""

from __future__ import annotations

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class BatchError(Exception):
    """Base class for screenshot agent errors."""


class FetchError(BatchError):
    """Worklist unreachable or malformed. Never escapes WorklistSource.fetch."""


class FetchConfigError(BatchError):
    """Worklist endpoint missing or invalid. Fatal for the batch."""


class LaunchError(BatchError):
    """Browser process or browsing context could not be created. Fatal for the batch."""


class CaptureError(BatchError):
    """Navigation, page-side transform or screenshot failed for one task."""

    def __init__(self, message: str, reason: str = "capture_failed") -> None:
        super().__init__(message)
        self.reason = reason


class PublishError(BatchError):
    """Artifact upload failed (transport error or non-2xx response)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ReportError(BatchError):
    """Status record write failed. Logged only; never changes the task outcome."""


def classify_task_error(exc: BaseException) -> str:
    """
    Classify a task failure for logging.

    Returns one of: navigation_timeout, net_err, publish_failed, the reason
    carried by a CaptureError, playwright_error, or unknown.
    """
    if isinstance(exc, PublishError):
        return "publish_failed"
    if isinstance(exc, CaptureError):
        return exc.reason
    if isinstance(exc, PlaywrightTimeoutError):
        return "navigation_timeout"
    msg = (getattr(exc, "message", None) or str(exc)).lower()
    if "net::err_" in msg:
        return "net_err"
    if isinstance(exc, PlaywrightError):
        return "playwright_error"
    return "unknown"
