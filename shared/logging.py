"""
Structured logging setup for the screenshot agent.

All runtime logging goes through structlog. Logs are JSON lines with an ISO
UTC timestamp, the level, the event name (renamed to "message") and any
context bound for the current task (url, device, language, batch_timestamp).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog

# Fields cleared after every task; batch_timestamp spans the whole batch
TASK_CONTEXT_KEYS = ("url", "device", "language")


def _build_shared_processors() -> list[structlog.types.Processor]:
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        timestamper,
        structlog.processors.EventRenamer("message"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_stdout: bool = True,
) -> None:
    """
    Configure structlog and the standard logging module.

    Called once at process startup by the entrypoint.

    - When log_stdout is True (default), a StreamHandler(sys.stdout) is added.
    - When log_file is set, a FileHandler is added (parent dir created if needed).
    - If both are disabled, stdout is used as fallback so the process never
      has zero handlers.
    """

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if log_stdout:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(level)
        stdout_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(stdout_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(file_handler)

    if not root.handlers:
        fallback = logging.StreamHandler(sys.stdout)
        fallback.setLevel(level)
        fallback.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(fallback)

    structlog.configure(
        processors=_build_shared_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Obtain a structured logger.

    Usage:
        from shared.logging import get_logger, bind_task_context

        logger = get_logger(__name__)
        bind_task_context(url="https://example.com", device="mobile")
        logger.info("capture_started")
    """

    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_task_context(
    *,
    url: Optional[str] = None,
    device: Optional[str] = None,
    language: Optional[str] = None,
    batch_timestamp: Optional[str] = None,
    **extra: Any,
) -> Mapping[str, Any]:
    """
    Bind common context fields for per-task logging.

    Every log line emitted while a capture task runs carries url, device,
    language and batch_timestamp. Keys with None values are not bound.
    """

    context: dict[str, Any] = {
        "url": url,
        "device": device,
        "language": language,
        "batch_timestamp": batch_timestamp,
        **extra,
    }

    filtered_context = {k: v for k, v in context.items() if v is not None}

    structlog.contextvars.bind_contextvars(**filtered_context)
    return filtered_context


def clear_task_context(bound: Optional[Mapping[str, Any]] = None) -> None:
    """
    Drop per-task fields so they do not leak into the next task's lines.

    Pass the mapping returned by bind_task_context to also drop any extra
    fields bound for the task. batch_timestamp stays bound for the batch.
    """
    keys = set(TASK_CONTEXT_KEYS)
    if bound:
        keys.update(k for k in bound if k != "batch_timestamp")
    structlog.contextvars.unbind_contextvars(*sorted(keys))
