"""
Unit tests for artifact publishers (form upload and direct object PUT).

requests.Session is mocked; covers request shape, PublishError propagation,
and publisher selection from config.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests

from worker.crawl.constants import DESKTOP, MOBILE
from worker.errors import PublishError
from worker.models import CaptureTarget, CaptureTask
from worker.publisher import (
    FormUploadPublisher,
    ObjectStorePublisher,
    build_publisher,
)

TS = "2023-10-25T10-30-00Z"
CAPTURED_AT = "2023-10-25T10:30:01.000Z"
IMAGE = b"\xff\xd8\xff\xe0fake-jpeg"


def _task(device=DESKTOP):
    return CaptureTask(
        target=CaptureTarget(url="https://a.test/home", language="en"),
        device=device,
        batch_timestamp=TS,
        captured_at=CAPTURED_AT,
    )


def _response(status_code=200, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "OK" if response.ok else "Internal Server Error"
    response.text = text
    return response


def test_form_upload_sends_multipart_fields():
    session = MagicMock()
    session.post.return_value = _response()
    task = _task(MOBILE)
    publisher = FormUploadPublisher("https://api.example.com/upload_to_r2_bucket", session, 7)

    publisher.publish(IMAGE, task.artifact_key, task)

    args, kwargs = session.post.call_args
    assert args == ("https://api.example.com/upload_to_r2_bucket",)
    assert kwargs["files"] == {"image": ("screenshot.jpg", IMAGE, "image/jpeg")}
    assert kwargs["data"] == {
        "url": "https://a.test/home",
        "language": "en",
        "objectKey": f"a.test/mobile/{TS}.jpg",
        "deviceName": "mobile",
        "capturedAt": CAPTURED_AT,
    }
    assert kwargs["timeout"] == 7


def test_form_upload_server_error_raises_publish_error():
    session = MagicMock()
    session.post.return_value = _response(500, "bucket unavailable")
    task = _task()
    publisher = FormUploadPublisher("https://api.example.com/upload", session)

    with pytest.raises(PublishError) as excinfo:
        publisher.publish(IMAGE, task.artifact_key, task)
    assert excinfo.value.status_code == 500
    assert "bucket unavailable" in str(excinfo.value)


def test_form_upload_transport_error_raises_publish_error():
    session = MagicMock()
    session.post.side_effect = requests.Timeout("read timed out")
    task = _task()
    publisher = FormUploadPublisher("https://api.example.com/upload", session)

    with pytest.raises(PublishError):
        publisher.publish(IMAGE, task.artifact_key, task)


def test_object_store_put_shape():
    session = MagicMock()
    session.put.return_value = _response(200)
    task = _task()
    publisher = ObjectStorePublisher("https://bucket.example.com/shots/", session, 9)

    publisher.publish(IMAGE, task.artifact_key, task)

    session.put.assert_called_once_with(
        f"https://bucket.example.com/shots/a.test/desktop/{TS}.jpg",
        data=IMAGE,
        headers={"Content-Type": "image/jpeg"},
        timeout=9,
    )


def test_object_store_rejected_put_raises():
    session = MagicMock()
    session.put.return_value = _response(403, "AccessDenied")
    task = _task()
    publisher = ObjectStorePublisher("https://bucket.example.com", session)

    with pytest.raises(PublishError) as excinfo:
        publisher.publish(IMAGE, task.artifact_key, task)
    assert excinfo.value.status_code == 403


def _config(**overrides):
    values = dict(
        upload_mode="form",
        upload_endpoint="https://api.example.com/upload_to_r2_bucket",
        bucket_url=None,
        http_timeout_seconds=30.0,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_build_publisher_form_mode():
    publisher = build_publisher(_config(), MagicMock())
    assert isinstance(publisher, FormUploadPublisher)


def test_build_publisher_object_mode_override():
    publisher = build_publisher(
        _config(bucket_url="https://bucket.example.com"), MagicMock(), upload_mode="object"
    )
    assert isinstance(publisher, ObjectStorePublisher)


def test_build_publisher_missing_endpoint_raises():
    with pytest.raises(ValueError, match="BUCKET_URL"):
        build_publisher(_config(upload_mode="object"), MagicMock())
    with pytest.raises(ValueError, match="UPLOAD_ENDPOINT"):
        build_publisher(_config(upload_endpoint=None), MagicMock())
