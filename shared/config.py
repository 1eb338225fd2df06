"""
Environment-based configuration for the screenshot agent.

This module exposes a small, typed configuration surface for the batch
worker. All values are sourced from environment variables with sensible,
non-secret defaults.

No secrets or credentials are hard-coded here; they must be provided via
the environment (or python-dotenv in local development).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

Environment = Literal["local", "dev", "staging", "prod"]
UploadMode = Literal["form", "object"]
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level application configuration.

    Endpoints are URIs only; the optional API key is sent as a bearer
    token by the HTTP clients that talk to the registry and storage.
    """

    environment: Environment
    log_level: str

    # Optional file path for structured JSON logs; when set, logs are written
    # to file (and stdout if log_stdout).
    log_file: Optional[str]
    # When True, logs go to stdout. When False, only file (if LOG_FILE set). Default True.
    log_stdout: bool

    # Registry and storage endpoints
    api_base_url: Optional[str]
    api_key: Optional[str]
    worklist_endpoint: Optional[str]
    status_endpoint: Optional[str]
    upload_endpoint: Optional[str]
    upload_mode: UploadMode
    bucket_url: Optional[str]

    http_timeout_seconds: float
    browser_headless: bool

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Construct configuration from environment variables.

        Endpoint variables default to paths under API_BASE_URL when unset.
        """

        environment = os.getenv("APP_ENV", "local")

        if environment not in {"local", "dev", "staging", "prod"}:
            raise ValueError(f"Unsupported APP_ENV value: {environment!r}")

        upload_mode = (os.getenv("UPLOAD_MODE") or "form").strip().lower()
        if upload_mode not in {"form", "object"}:
            raise ValueError(f"Unsupported UPLOAD_MODE value: {upload_mode!r}")

        log_level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"Unsupported LOG_LEVEL value: {log_level!r}")

        def _bool_env(name: str, default: bool) -> bool:
            raw = (os.getenv(name) or str(default)).strip().lower()
            return raw in ("true", "1", "yes")

        def _float_env(name: str, default: float) -> float:
            raw = (os.getenv(name) or "").strip()
            try:
                value = float(raw) if raw else default
            except ValueError:
                return default
            return value if value > 0 else default

        api_base_url = (os.getenv("API_BASE_URL") or "").strip().rstrip("/") or None

        def _endpoint(name: str, path: str) -> Optional[str]:
            explicit = (os.getenv(name) or "").strip()
            if explicit:
                return explicit
            if api_base_url:
                return f"{api_base_url}/{path}"
            return None

        return cls(
            environment=environment,  # type: ignore[arg-type]
            log_level=log_level,
            log_file=os.getenv("LOG_FILE") or None,
            log_stdout=_bool_env("LOG_STDOUT", True),
            api_base_url=api_base_url,
            api_key=os.getenv("API_KEY") or None,
            worklist_endpoint=_endpoint("WORKLIST_ENDPOINT", "urls"),
            status_endpoint=_endpoint("STATUS_ENDPOINT", "screenshots"),
            upload_endpoint=_endpoint("UPLOAD_ENDPOINT", "upload_to_r2_bucket"),
            upload_mode=upload_mode,  # type: ignore[arg-type]
            bucket_url=(os.getenv("BUCKET_URL") or "").strip().rstrip("/") or None,
            http_timeout_seconds=_float_env("HTTP_TIMEOUT_SECONDS", 30.0),
            browser_headless=_bool_env("BROWSER_HEADLESS", True),
        )

