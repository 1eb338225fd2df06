"""
Worker entrypoint: run one screenshot batch and exit.

Exit status is 0 when the batch ran (including an empty worklist, and
regardless of how many individual tasks failed) and 1 on a fatal
pre-iteration error: missing worklist endpoint, bad configuration, or a
browser/context launch failure.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from shared.config import AppConfig
from shared.http import build_session
from shared.logging import configure_logging, get_logger
from worker.capture import CaptureExecutor
from worker.crawl.cleanup import DEFAULT_CLEANUP, PreCaptureTransform
from worker.errors import FetchConfigError, LaunchError
from worker.models import BatchResult
from worker.orchestrator import BatchOrchestrator
from worker.publisher import build_publisher
from worker.settings import CaptureSettings
from worker.status import JobStatusReporter
from worker.storage import is_valid_batch_timestamp
from worker.worklist import WorklistSource

EXIT_OK = 0
EXIT_FATAL = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="screenshot-agent",
        description="Capture desktop and mobile screenshots for every worklist url and publish them.",
    )
    parser.add_argument(
        "--device",
        action="append",
        dest="devices",
        metavar="NAME",
        help="Restrict capture to this device profile (repeatable). Default: all profiles.",
    )
    parser.add_argument(
        "--timestamp",
        help="Batch timestamp to reuse (e.g. 2023-10-25T10-30-00Z); existing objects are overwritten.",
    )
    parser.add_argument(
        "--upload-mode",
        choices=("form", "object"),
        help="Override UPLOAD_MODE: multipart POST to the API or direct PUT to the bucket.",
    )
    parser.add_argument(
        "--cleanup-script",
        metavar="PATH",
        help="JS file replacing the built-in pre-capture DOM cleanup.",
    )
    return parser


def build_orchestrator(
    config: AppConfig,
    settings: CaptureSettings,
    upload_mode: Optional[str] = None,
    transform: Optional[PreCaptureTransform] = DEFAULT_CLEANUP,
) -> BatchOrchestrator:
    """Wire the worklist source, executor, publisher and reporter from config."""
    session = build_session(config.api_key)
    timeout = config.http_timeout_seconds
    publisher = build_publisher(config, session, upload_mode)
    return BatchOrchestrator(
        settings=settings,
        worklist=WorklistSource(config.worklist_endpoint, session, timeout),
        executor=CaptureExecutor(settings, publisher, transform),
        reporter=JobStatusReporter(config.status_endpoint, session, timeout),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse args, configure logging, run the batch. Returns the exit status."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = AppConfig.from_env()
    except ValueError as e:
        configure_logging()
        get_logger(__name__).error("config_invalid", error=str(e))
        return EXIT_FATAL

    configure_logging(
        level=logging.getLevelName(config.log_level),
        log_file=config.log_file,
        log_stdout=config.log_stdout,
    )
    logger = get_logger(__name__)

    if args.timestamp and not is_valid_batch_timestamp(args.timestamp):
        logger.error("batch_timestamp_invalid", timestamp=args.timestamp)
        return EXIT_FATAL

    try:
        settings = CaptureSettings(headless=config.browser_headless)
        if args.devices:
            settings = settings.with_devices(args.devices)
        transform = (
            PreCaptureTransform.from_file(args.cleanup_script)
            if args.cleanup_script
            else DEFAULT_CLEANUP
        )
        orchestrator = build_orchestrator(config, settings, args.upload_mode, transform)
    except (ValueError, OSError) as e:
        logger.error("batch_setup_failed", error=str(e), error_type=type(e).__name__)
        return EXIT_FATAL

    try:
        result: BatchResult = asyncio.run(orchestrator.run(args.timestamp))
    except (FetchConfigError, LaunchError) as e:
        logger.error("batch_fatal", error=str(e), error_type=type(e).__name__)
        return EXIT_FATAL

    logger.info("batch_exit", outcome=result.outcome, attempted=result.attempted)
    return EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
