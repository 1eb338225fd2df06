"""
Capture executor: render one (url, device) task and publish its screenshot.

Flow per task: new page in the device's shared context → goto (DOM parsed,
45 s cap) → fixed settle delay → pre-capture DOM cleanup → JPEG screenshot
→ publish. Any failure is absorbed here and reported as outcome "failed";
the page is closed on every path because the context outlives the task.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from playwright.async_api import BrowserContext, Page

from shared.logging import get_logger
from worker.crawl.cleanup import DEFAULT_CLEANUP, PreCaptureTransform
from worker.errors import CaptureError, classify_task_error
from worker.models import CaptureTask, JobStatus
from worker.publisher import ArtifactPublisher
from worker.settings import CaptureSettings

logger = get_logger(__name__)


class CaptureExecutor:
    def __init__(
        self,
        settings: CaptureSettings,
        publisher: ArtifactPublisher,
        transform: Optional[PreCaptureTransform] = DEFAULT_CLEANUP,
    ) -> None:
        self.settings = settings
        self.publisher = publisher
        self.transform = transform

    async def _navigate(self, page: Page, url: str) -> None:
        try:
            await page.goto(
                url,
                timeout=self.settings.nav_timeout_ms,
                wait_until=self.settings.nav_wait_until,
            )
        except Exception as e:
            reason = classify_task_error(e)
            if reason not in ("navigation_timeout", "net_err"):
                reason = "navigation_failed"
            raise CaptureError(f"Navigation to {url} failed: {e}", reason=reason) from e

    async def _apply_transform(self, page: Page) -> None:
        if self.transform is None:
            return
        try:
            await self.transform.apply(page)
        except Exception as e:
            raise CaptureError(
                f"Pre-capture transform {self.transform.name} v{self.transform.version} failed: {e}",
                reason="evaluation_failed",
            ) from e

    async def _screenshot(self, page: Page) -> bytes:
        try:
            return await page.screenshot(type="jpeg", quality=self.settings.jpeg_quality)
        except Exception as e:
            raise CaptureError(f"Screenshot failed: {e}", reason="screenshot_failed") from e

    async def run(self, task: CaptureTask, context: BrowserContext) -> JobStatus:
        """
        Execute one task against its device context. Never raises.

        Returns "ok" when the screenshot was captured and published, else
        "failed". The classified failure reason is logged.
        """
        artifact_key = task.artifact_key
        page: Optional[Page] = None
        start = time.monotonic()
        logger.info("capture_started", artifact_key=artifact_key)

        try:
            page = await context.new_page()
            await self._navigate(page, task.target.url)
            # Heuristic settle for late layout and ad content; not a readiness guarantee.
            await page.wait_for_timeout(self.settings.settle_delay_ms)
            await self._apply_transform(page)
            image_bytes = await self._screenshot(page)
            await asyncio.to_thread(self.publisher.publish, image_bytes, artifact_key, task)
        except Exception as e:
            logger.error(
                "capture_failed",
                artifact_key=artifact_key,
                reason=classify_task_error(e),
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.monotonic() - start) * 1000),
            )
            return "failed"
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.warning("page_close_failed", error=str(e), error_type=type(e).__name__)

        logger.info(
            "capture_completed",
            artifact_key=artifact_key,
            size_bytes=len(image_bytes),
            duration_ms=round((time.monotonic() - start) * 1000),
        )
        return "ok"
