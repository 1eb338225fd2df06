"""
Artifact publishers: deliver encoded screenshot bytes to object storage under
their artifact key.

Two delivery paths exist:
- FormUploadPublisher: multipart POST to the API's upload endpoint, which
  writes to the bucket on the agent's behalf.
- ObjectStorePublisher: direct PUT of the object at {bucket_url}/{key}.

Both raise PublishError on transport failure or non-2xx so the caller marks
the task failed and moves on.
"""

from __future__ import annotations

from typing import Optional, Protocol
from urllib.parse import quote

import requests

from shared.config import AppConfig
from shared.http import describe_response, is_success
from shared.logging import get_logger
from worker.errors import PublishError
from worker.models import CaptureTask

logger = get_logger(__name__)

CONTENT_TYPE = "image/jpeg"
UPLOAD_FILENAME = "screenshot.jpg"


class ArtifactPublisher(Protocol):
    def publish(self, image_bytes: bytes, artifact_key: str, task: CaptureTask) -> None: ...


def _raise_for_response(response: requests.Response, artifact_key: str) -> None:
    if not is_success(response):
        raise PublishError(
            f"Upload failed for {artifact_key}: {describe_response(response)}",
            status_code=response.status_code,
        )


class FormUploadPublisher:
    """POST multipart/form-data with the image and its job metadata."""

    def __init__(
        self,
        endpoint: str,
        session: requests.Session,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.endpoint = endpoint
        self.session = session
        self.timeout_seconds = timeout_seconds

    def publish(self, image_bytes: bytes, artifact_key: str, task: CaptureTask) -> None:
        files = {"image": (UPLOAD_FILENAME, image_bytes, CONTENT_TYPE)}
        data = {
            "url": task.target.url,
            "language": task.target.language,
            "objectKey": artifact_key,
            "deviceName": task.device.name,
            "capturedAt": task.captured_at,
        }
        try:
            response = self.session.post(
                self.endpoint,
                files=files,
                data=data,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            raise PublishError(f"Upload request failed for {artifact_key}: {e}") from e
        _raise_for_response(response, artifact_key)
        logger.info("upload_completed", artifact_key=artifact_key, size_bytes=len(image_bytes))


class ObjectStorePublisher:
    """PUT the raw bytes at {bucket_url}/{artifact_key}."""

    def __init__(
        self,
        bucket_url: str,
        session: requests.Session,
        timeout_seconds: float = 30.0,
    ) -> None:
        self.bucket_url = bucket_url.rstrip("/")
        self.session = session
        self.timeout_seconds = timeout_seconds

    def object_url(self, artifact_key: str) -> str:
        return f"{self.bucket_url}/{quote(artifact_key, safe='/')}"

    def publish(self, image_bytes: bytes, artifact_key: str, task: CaptureTask) -> None:
        try:
            response = self.session.put(
                self.object_url(artifact_key),
                data=image_bytes,
                headers={"Content-Type": CONTENT_TYPE},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            raise PublishError(f"Object PUT failed for {artifact_key}: {e}") from e
        _raise_for_response(response, artifact_key)
        logger.info("upload_completed", artifact_key=artifact_key, size_bytes=len(image_bytes))


def build_publisher(
    config: AppConfig,
    session: requests.Session,
    upload_mode: Optional[str] = None,
) -> ArtifactPublisher:
    """
    Pick the publisher for the configured upload mode.

    Raises ValueError when the chosen mode has no endpoint configured.
    """
    mode = upload_mode or config.upload_mode
    if mode == "object":
        if not config.bucket_url:
            raise ValueError("UPLOAD_MODE=object requires BUCKET_URL")
        return ObjectStorePublisher(config.bucket_url, session, config.http_timeout_seconds)
    if mode == "form":
        if not config.upload_endpoint:
            raise ValueError("UPLOAD_MODE=form requires UPLOAD_ENDPOINT or API_BASE_URL")
        return FormUploadPublisher(config.upload_endpoint, session, config.http_timeout_seconds)
    raise ValueError(f"Unsupported upload mode: {mode!r}")
