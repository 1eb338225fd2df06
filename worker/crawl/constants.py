"""
Capture constants: device profiles, browser flags, timeouts, encoding.
"""

from __future__ import annotations

from worker.models import DeviceProfile

DESKTOP = DeviceProfile(
    name="desktop",
    viewport_width=1920,
    viewport_height=1080,
    user_agent=(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
)

MOBILE = DeviceProfile(
    name="mobile",
    viewport_width=390,
    viewport_height=844,
    user_agent=(
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) "
        "Version/17.0 Mobile/15E148 Safari/604.1"
    ),
)

# Iteration order within each url
DEVICE_PROFILES: tuple[DeviceProfile, ...] = (DESKTOP, MOBILE)

# Server execution: no sandbox, no GPU, no notification prompts
BROWSER_ARGS: tuple[str, ...] = (
    "--headless",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--hide-scrollbars",
    "--disable-notifications",
)

DEVICE_SCALE_FACTOR = 1

# Timeout constants (in milliseconds)
NAV_TIMEOUT_MS = 45_000  # Hard cap per navigation
SETTLE_DELAY_MS = 2_500  # Wait after DOM parsed, before cleanup + capture

# DOM parsed only; full load can hang on ads and trackers
NAV_WAIT_UNTIL = "domcontentloaded"

JPEG_QUALITY = 60
