"""
Immutable capture settings passed to the orchestrator at construction.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

from worker.crawl.constants import (
    BROWSER_ARGS,
    DEVICE_PROFILES,
    DEVICE_SCALE_FACTOR,
    JPEG_QUALITY,
    NAV_TIMEOUT_MS,
    NAV_WAIT_UNTIL,
    SETTLE_DELAY_MS,
)
from worker.models import DeviceProfile


@dataclass(frozen=True)
class CaptureSettings:
    """
    Every fixed knob of a batch run in one value.

    Defaults reproduce the production agent: JPEG quality 60, 45 s navigation
    cap waiting for DOMContentLoaded only, a 2.5 s settle delay before
    cleanup and capture, scale factor 1, desktop then mobile.
    """

    jpeg_quality: int = JPEG_QUALITY
    nav_timeout_ms: int = NAV_TIMEOUT_MS
    nav_wait_until: str = NAV_WAIT_UNTIL
    settle_delay_ms: int = SETTLE_DELAY_MS
    device_scale_factor: float = DEVICE_SCALE_FACTOR
    browser_args: tuple[str, ...] = BROWSER_ARGS
    headless: bool = True
    devices: tuple[DeviceProfile, ...] = DEVICE_PROFILES

    def __post_init__(self) -> None:
        if not 0 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be within 0..100, got {self.jpeg_quality}")
        if self.nav_timeout_ms <= 0:
            raise ValueError("nav_timeout_ms must be positive")
        if self.settle_delay_ms < 0:
            raise ValueError("settle_delay_ms must not be negative")
        names = [d.name for d in self.devices]
        if not names:
            raise ValueError("at least one device profile is required")
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate device profile names: {names}")

    def with_devices(self, names: Iterable[str]) -> "CaptureSettings":
        """
        Restrict the device set to the given names, keeping profile order.

        Raises ValueError for names that match no profile.
        """
        wanted = list(dict.fromkeys(names))
        known = {d.name: d for d in self.devices}
        unknown = [n for n in wanted if n not in known]
        if unknown:
            raise ValueError(f"Unknown device profile(s): {', '.join(unknown)}")
        return replace(self, devices=tuple(d for d in self.devices if d.name in wanted))
