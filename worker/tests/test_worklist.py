"""
Unit tests for the worklist source: parsing, skipping bad entries, and
non-fatal fetch failures. requests is mocked; no network access.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from worker.errors import FetchConfigError, FetchError
from worker.models import CaptureTarget
from worker.worklist import WorklistSource, parse_worklist

ENDPOINT = "https://api.example.com/urls"


def _response(status_code=200, payload=None, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "OK" if response.ok else "Error"
    response.text = ""
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


def _source(response=None, side_effect=None):
    session = MagicMock()
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value = response
    return WorklistSource(ENDPOINT, session, timeout_seconds=5), session


def test_parse_worklist_canonical_entries():
    targets = parse_worklist(
        [
            {"id": "1", "url": "https://a.test", "language": "en"},
            {"url": "https://b.test", "language": "pt"},
        ]
    )
    assert targets == [
        CaptureTarget(url="https://a.test", language="en", id="1"),
        CaptureTarget(url="https://b.test", language="pt", id=None),
    ]


def test_parse_worklist_skips_invalid_entries():
    targets = parse_worklist(
        [
            {"host": "huffpost.com", "lang": "en"},
            {"url": "", "language": "en"},
            {"url": "https://c.test"},
            "https://d.test",
            {"url": "https://e.test", "language": "de"},
        ]
    )
    assert [t.url for t in targets] == ["https://e.test"]


def test_parse_worklist_drops_duplicate_urls_keeping_first():
    targets = parse_worklist(
        [
            {"url": "https://a.test", "language": "en"},
            {"url": "https://a.test", "language": "fr"},
        ]
    )
    assert len(targets) == 1
    assert targets[0].language == "en"


def test_parse_worklist_rejects_non_array():
    with pytest.raises(FetchError):
        parse_worklist({"urls": []})


def test_fetch_success_preserves_order():
    source, session = _source(
        _response(
            payload=[
                {"url": "https://b.test", "language": "en"},
                {"url": "https://a.test", "language": "en"},
            ]
        )
    )
    targets = source.fetch()
    assert [t.url for t in targets] == ["https://b.test", "https://a.test"]
    session.get.assert_called_once_with(ENDPOINT, timeout=5)


@pytest.mark.parametrize("status_code", [404, 500, 503])
def test_fetch_non_2xx_returns_empty(status_code):
    source, _ = _source(_response(status_code=status_code))
    assert source.fetch() == []


def test_fetch_transport_error_returns_empty():
    source, _ = _source(side_effect=requests.ConnectionError("connection refused"))
    assert source.fetch() == []


def test_fetch_invalid_json_returns_empty():
    source, _ = _source(_response(json_error=ValueError("Expecting value")))
    assert source.fetch() == []


def test_fetch_non_array_payload_returns_empty():
    source, _ = _source(_response(payload={"error": "nope"}))
    assert source.fetch() == []


def test_fetch_without_endpoint_is_fatal():
    source = WorklistSource(None, MagicMock())
    with pytest.raises(FetchConfigError):
        source.fetch()
