"""
Unit tests for the shared HTTP session helpers.
"""

from __future__ import annotations

from unittest.mock import MagicMock

from shared.http import USER_AGENT, build_session, describe_response, is_success


def _response(status_code, reason="", text=""):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.text = text
    return response


def test_build_session_sets_bearer_token():
    session = build_session("k-123")
    assert session.headers["Authorization"] == "Bearer k-123"
    assert session.headers["User-Agent"] == USER_AGENT


def test_build_session_without_key_has_no_auth_header():
    assert "Authorization" not in build_session(None).headers


def test_is_success_only_2xx():
    assert is_success(_response(200)) is True
    assert is_success(_response(204)) is True
    assert is_success(_response(302)) is False
    assert is_success(_response(500)) is False


def test_describe_response_truncates_body():
    text = describe_response(_response(500, "Internal Server Error", "x" * 500), limit=10)
    assert text == "500 Internal Server Error: " + "x" * 10 + "…"


def test_describe_response_without_body():
    assert describe_response(_response(404, "Not Found")) == "404 Not Found"
