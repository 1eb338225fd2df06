"""
HTTP session helper for the registry and storage clients.

One requests.Session per batch run keeps connections to the API host alive
across the worklist fetch, uploads and status writes.
"""

from __future__ import annotations

from typing import Optional

import requests

USER_AGENT = "screenshot-agent/1.0"


def build_session(api_key: Optional[str] = None) -> requests.Session:
    """
    Return a requests.Session with the agent's default headers.

    When api_key is set it is sent as a bearer token on every request.
    """
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    if api_key:
        session.headers["Authorization"] = f"Bearer {api_key}"
    return session


def describe_response(response: requests.Response, limit: int = 200) -> str:
    """Short 'status reason: body' string for log lines and error messages."""
    try:
        body = response.text or ""
    except Exception:
        body = ""
    body = body.strip().replace("\n", " ")
    if len(body) > limit:
        body = body[:limit] + "…"
    reason = response.reason or ""
    return f"{response.status_code} {reason}: {body}".strip().rstrip(":")


def is_success(response: requests.Response) -> bool:
    """2xx only; requests' Response.ok also accepts 3xx."""
    return 200 <= response.status_code < 300
