"""
Browser farm: one headless Chromium process and one long-lived browsing
context per device profile for the lifetime of a batch.

Contexts are shared sequentially by every task for their device, so cookies
and storage set by one target persist into the next target on that device.
Access is strictly sequential; concurrent use needs added synchronization.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from shared.logging import get_logger
from worker.errors import LaunchError
from worker.models import DeviceProfile

if TYPE_CHECKING:
    from worker.settings import CaptureSettings

logger = get_logger(__name__)


async def create_browser_context(
    browser: Browser,
    device: DeviceProfile,
    device_scale_factor: float = 1,
) -> BrowserContext:
    """Create a browser context with the device's viewport and user agent."""
    return await browser.new_context(
        viewport={"width": device.viewport_width, "height": device.viewport_height},
        user_agent=device.user_agent,
        device_scale_factor=device_scale_factor,
    )


class BrowserFarm:
    """
    Scoped owner of the browser process and per-device contexts.

    Usage:
        async with BrowserFarm(settings) as farm:
            context = farm.context_for("desktop")

    Any failure while launching or opening contexts raises LaunchError after
    releasing what was already acquired. Teardown runs exactly once.
    """

    def __init__(self, settings: CaptureSettings, playwright_factory=async_playwright) -> None:
        self._settings = settings
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: dict[str, BrowserContext] = {}
        self._closed = False

    @property
    def contexts(self) -> dict[str, BrowserContext]:
        return dict(self._contexts)

    def context_for(self, device_name: str) -> BrowserContext:
        try:
            return self._contexts[device_name]
        except KeyError:
            raise LaunchError(f"No browsing context open for device {device_name!r}") from None

    async def launch(self) -> None:
        """Start Playwright and launch Chromium with the fixed flag set."""
        args = list(self._settings.browser_args)
        if not self._settings.headless:
            args = [arg for arg in args if arg != "--headless"]
        try:
            self._playwright = await self._playwright_factory().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._settings.headless,
                args=args,
            )
        except Exception as e:
            logger.error("browser_launch_failed", error=str(e), error_type=type(e).__name__)
            await self.close()
            raise LaunchError(f"Browser launch failed: {e}") from e
        logger.info("browser_launched", headless=self._settings.headless)

    async def open_contexts(self) -> None:
        """Create one context per device profile, in profile order."""
        if self._browser is None:
            raise LaunchError("Browser is not running")
        for device in self._settings.devices:
            try:
                self._contexts[device.name] = await create_browser_context(
                    self._browser,
                    device,
                    device_scale_factor=self._settings.device_scale_factor,
                )
            except Exception as e:
                logger.error(
                    "browser_context_failed",
                    device=device.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self.close()
                raise LaunchError(f"Context creation failed for {device.name}: {e}") from e
            logger.info(
                "browser_context_opened",
                device=device.name,
                viewport=f"{device.viewport_width}x{device.viewport_height}",
            )

    async def close(self) -> None:
        """
        Close every context, then the browser, then Playwright. Idempotent.

        Teardown errors are logged and never raised, so they cannot mask the
        error that triggered the teardown.
        """
        if self._closed:
            return
        self._closed = True

        for name, context in self._contexts.items():
            try:
                await context.close()
            except Exception as e:
                logger.warning(
                    "browser_context_close_failed",
                    device=name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        self._contexts.clear()

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning("browser_close_failed", error=str(e), error_type=type(e).__name__)
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning("playwright_stop_failed", error=str(e), error_type=type(e).__name__)
            self._playwright = None

        logger.info("browser_closed")

    async def __aenter__(self) -> "BrowserFarm":
        await self.launch()
        await self.open_contexts()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
