"""
Playwright-side helpers for screenshot capture: device constants, the
browser farm and the pre-capture DOM cleanup.
"""

from __future__ import annotations

from worker.crawl.browser import BrowserFarm, create_browser_context
from worker.crawl.cleanup import DEFAULT_CLEANUP, PreCaptureTransform
from worker.crawl.constants import (
    BROWSER_ARGS,
    DESKTOP,
    DEVICE_PROFILES,
    DEVICE_SCALE_FACTOR,
    JPEG_QUALITY,
    MOBILE,
    NAV_TIMEOUT_MS,
    NAV_WAIT_UNTIL,
    SETTLE_DELAY_MS,
)

__all__ = [
    # constants
    "BROWSER_ARGS",
    "DESKTOP",
    "MOBILE",
    "DEVICE_PROFILES",
    "DEVICE_SCALE_FACTOR",
    "JPEG_QUALITY",
    "NAV_TIMEOUT_MS",
    "NAV_WAIT_UNTIL",
    "SETTLE_DELAY_MS",
    # browser
    "BrowserFarm",
    "create_browser_context",
    # cleanup
    "PreCaptureTransform",
    "DEFAULT_CLEANUP",
]
