"""
Unit tests for the browser farm: launch flags, one context per device,
LaunchError on failure, and exactly-once teardown.

No Playwright browser required; the async_playwright factory is faked.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from worker.crawl.browser import BrowserFarm, create_browser_context
from worker.crawl.constants import BROWSER_ARGS, DESKTOP, MOBILE
from worker.errors import LaunchError
from worker.settings import CaptureSettings


def _fake_playwright(contexts=None, launch_error=None, context_error=None):
    """Return (factory, playwright, browser) mocks shaped like async_playwright()."""
    browser = MagicMock()
    browser.close = AsyncMock()
    if context_error is not None:
        browser.new_context = AsyncMock(side_effect=context_error)
    else:
        browser.new_context = AsyncMock(side_effect=contexts or [_context(), _context()])

    playwright = MagicMock()
    playwright.stop = AsyncMock()
    if launch_error is not None:
        playwright.chromium.launch = AsyncMock(side_effect=launch_error)
    else:
        playwright.chromium.launch = AsyncMock(return_value=browser)

    manager = MagicMock()
    manager.start = AsyncMock(return_value=playwright)
    factory = MagicMock(return_value=manager)
    return factory, playwright, browser


def _context():
    context = MagicMock()
    context.close = AsyncMock()
    return context


@pytest.mark.asyncio
async def test_create_browser_context_uses_profile():
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value="ctx")

    result = await create_browser_context(browser, MOBILE, device_scale_factor=1)

    assert result == "ctx"
    browser.new_context.assert_awaited_once_with(
        viewport={"width": 390, "height": 844},
        user_agent=MOBILE.user_agent,
        device_scale_factor=1,
    )


@pytest.mark.asyncio
async def test_farm_launches_with_fixed_flags_and_opens_contexts_in_order():
    desktop_ctx, mobile_ctx = _context(), _context()
    factory, playwright, browser = _fake_playwright(contexts=[desktop_ctx, mobile_ctx])

    async with BrowserFarm(CaptureSettings(), playwright_factory=factory) as farm:
        assert farm.context_for("desktop") is desktop_ctx
        assert farm.context_for("mobile") is mobile_ctx

    playwright.chromium.launch.assert_awaited_once_with(headless=True, args=list(BROWSER_ARGS))
    viewports = [c.kwargs["viewport"] for c in browser.new_context.await_args_list]
    assert viewports == [{"width": 1920, "height": 1080}, {"width": 390, "height": 844}]
    assert all(c.kwargs["device_scale_factor"] == 1 for c in browser.new_context.await_args_list)

    desktop_ctx.close.assert_awaited_once()
    mobile_ctx.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_farm_headed_launch_drops_headless_flag():
    factory, playwright, _ = _fake_playwright()
    farm = BrowserFarm(CaptureSettings(headless=False), playwright_factory=factory)

    await farm.launch()
    await farm.close()

    kwargs = playwright.chromium.launch.await_args.kwargs
    assert kwargs["headless"] is False
    assert "--headless" not in kwargs["args"]
    assert kwargs["args"] == [arg for arg in BROWSER_ARGS if arg != "--headless"]


@pytest.mark.asyncio
async def test_farm_close_is_idempotent():
    factory, playwright, browser = _fake_playwright()
    farm = BrowserFarm(CaptureSettings(), playwright_factory=factory)
    await farm.launch()
    await farm.open_contexts()

    await farm.close()
    await farm.close()

    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_farm_launch_failure_raises_launch_error_and_releases():
    factory, playwright, _ = _fake_playwright(launch_error=RuntimeError("no chromium"))
    farm = BrowserFarm(CaptureSettings(), playwright_factory=factory)

    with pytest.raises(LaunchError, match="no chromium"):
        await farm.launch()

    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_farm_context_failure_closes_opened_contexts():
    desktop_ctx = _context()
    factory, playwright, browser = _fake_playwright(
        contexts=[desktop_ctx, RuntimeError("context crashed")]
    )
    farm = BrowserFarm(CaptureSettings(), playwright_factory=factory)
    await farm.launch()

    with pytest.raises(LaunchError, match="mobile"):
        await farm.open_contexts()

    desktop_ctx.close.assert_awaited_once()
    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_farm_teardown_errors_do_not_raise():
    desktop_ctx, mobile_ctx = _context(), _context()
    desktop_ctx.close = AsyncMock(side_effect=RuntimeError("already closed"))
    factory, playwright, browser = _fake_playwright(contexts=[desktop_ctx, mobile_ctx])
    browser.close = AsyncMock(side_effect=RuntimeError("browser gone"))
    farm = BrowserFarm(CaptureSettings(), playwright_factory=factory)
    await farm.launch()
    await farm.open_contexts()

    await farm.close()

    mobile_ctx.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()


@pytest.mark.asyncio
async def test_farm_respects_device_subset():
    factory, _, browser = _fake_playwright(contexts=[_context()])
    settings = CaptureSettings().with_devices(["mobile"])

    async with BrowserFarm(settings, playwright_factory=factory) as farm:
        assert list(farm.contexts) == ["mobile"]
        with pytest.raises(LaunchError):
            farm.context_for(DESKTOP.name)

    browser.new_context.assert_awaited_once()
