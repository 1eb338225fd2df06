"""
Artifact key helpers.

Convention: {host_key}/{device_name}/{batch_timestamp}.jpg

Keys are a pure function of their inputs, so re-running a batch with the same
timestamp overwrites the stored objects instead of duplicating them.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

ARTIFACT_EXTENSION = "jpg"

BATCH_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%SZ"
_BATCH_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}Z$")
_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def get_url_key(raw_url: str) -> str:
    """
    Host part of a url, used as the first key segment.

    Absolute urls yield their (lowercased) hostname. Anything else falls back
    to stripping a leading http(s):// and keeping text up to the first "/".

    Examples:
        https://www.example.com/path -> www.example.com
        a.test -> a.test
    """
    value = (raw_url or "").strip()
    try:
        parsed = urlparse(value)
        host = parsed.hostname if parsed.scheme and parsed.netloc else None
    except ValueError:
        host = None
    if host:
        return host
    return _SCHEME_RE.sub("", value).split("/")[0]


def generate_batch_timestamp(now: Optional[datetime] = None) -> str:
    """
    ISO-8601 UTC instant with colons replaced by hyphens, fractional seconds
    dropped and a trailing Z, e.g. 2023-10-25T10-30-00Z.
    """
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(BATCH_TIMESTAMP_FORMAT)


def is_valid_batch_timestamp(value: str) -> bool:
    """True if value has the batch timestamp shape and is a real instant."""
    if not _BATCH_TIMESTAMP_RE.match(value or ""):
        return False
    try:
        datetime.strptime(value, BATCH_TIMESTAMP_FORMAT)
    except ValueError:
        return False
    return True


def build_artifact_key(url: str, device_name: str, batch_timestamp: str) -> str:
    """Build the storage object key for one (url, device) capture in a batch."""
    return f"{get_url_key(url)}/{device_name}/{batch_timestamp}.{ARTIFACT_EXTENSION}"
