"""
Worklist source: fetch the ordered capture targets for a batch.

Canonical entry shape is {"id"?: str, "url": str, "language": str}. Transport
failures and malformed payloads yield an empty worklist; an empty worklist is
a normal "nothing to do" outcome, not a batch failure.
"""

from __future__ import annotations

from typing import Any, Optional

import requests

from shared.http import describe_response, is_success
from shared.logging import get_logger
from worker.errors import FetchConfigError, FetchError
from worker.models import CaptureTarget

logger = get_logger(__name__)


def parse_worklist(payload: Any) -> list[CaptureTarget]:
    """
    Turn a decoded JSON payload into capture targets.

    Raises FetchError if the payload is not a JSON array. Entries without a
    non-empty string url and language are skipped with a warning; repeated
    urls keep their first occurrence.
    """
    if not isinstance(payload, list):
        raise FetchError(f"Worklist payload must be a JSON array, got {type(payload).__name__}")

    targets: list[CaptureTarget] = []
    seen: set[str] = set()
    for index, entry in enumerate(payload):
        target = _parse_entry(entry)
        if target is None:
            logger.warning("worklist_entry_skipped", index=index, reason="invalid_entry")
            continue
        if target.url in seen:
            logger.warning("worklist_entry_skipped", index=index, reason="duplicate_url")
            continue
        seen.add(target.url)
        targets.append(target)
    return targets


def _parse_entry(entry: Any) -> Optional[CaptureTarget]:
    if not isinstance(entry, dict):
        return None
    url = entry.get("url")
    language = entry.get("language")
    if not isinstance(url, str) or not url.strip():
        return None
    if not isinstance(language, str) or not language.strip():
        return None
    raw_id = entry.get("id")
    return CaptureTarget(
        url=url.strip(),
        language=language.strip(),
        id=str(raw_id) if raw_id is not None else None,
    )


class WorklistSource:
    """GET the worklist registry once per batch."""

    def __init__(
        self,
        endpoint: Optional[str],
        session: requests.Session,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.endpoint = endpoint
        self.session = session
        self.timeout_seconds = timeout_seconds

    def fetch(self) -> list[CaptureTarget]:
        """
        Fetch and parse the worklist.

        Raises FetchConfigError when no endpoint is configured. Every other
        failure is logged and returns [].
        """
        if not self.endpoint:
            raise FetchConfigError("Worklist endpoint is not configured (set API_BASE_URL)")

        try:
            response = self.session.get(self.endpoint, timeout=self.timeout_seconds)
            if not is_success(response):
                raise FetchError(f"Worklist request failed: {describe_response(response)}")
            try:
                payload = response.json()
            except ValueError as e:
                raise FetchError(f"Worklist response is not valid JSON: {e}") from e
            targets = parse_worklist(payload)
        except (requests.RequestException, FetchError) as e:
            logger.error(
                "worklist_fetch_failed",
                endpoint=self.endpoint,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        logger.info("worklist_fetched", endpoint=self.endpoint, count=len(targets))
        return targets
