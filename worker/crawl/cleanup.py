"""
Pre-capture DOM cleanup: strip consent banners, sticky navigation and ad
containers from the rendered page before the screenshot.

The cleanup runs as a versioned PreCaptureTransform injected into the capture
executor, so rules can change (or be loaded from a file) without touching
orchestration. The transform only mutates the page; its return value is a
small count dict used for debug logging.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from playwright.async_api import Page

from shared.logging import get_logger

logger = get_logger(__name__)

# Consent / GDPR / CMP containers removed from the DOM
CONSENT_SELECTORS = (
    "#onetrust-consent-sdk",
    "#CybotCookiebotDialog",
    "#usercentrics-root",
    "#didomi-host",
    "#qc-cmp2-container",
    ".fc-consent-root",
    ".offcanvas-cookie",
    ".cookie-permission",
    "[id*='cookie-banner']",
    "[class*='cookie-banner']",
    "[id*='consent']",
    "[class*='consent']",
    "[class*='gdpr']",
    "[class*='ccpa']",
    "iframe[src*='consent']",
    "[id^='sp_message_container']",
)

# Ad slots and ad iframes removed from the DOM
AD_SELECTORS = (
    "iframe[src*='doubleclick']",
    "iframe[src*='googlesyndication']",
    "iframe[id^='google_ads_iframe']",
    "ins.adsbygoogle",
    "[id^='div-gpt-ad']",
    "[class*='ad-container']",
    "[class*='ad-slot']",
    "[class*='advert']",
    "[data-ad-slot]",
    "[data-google-query-id]",
)

# Nodes never touched by the sticky/overlay pass
STRUCTURAL_TAGS = ("html", "body", "main")

_CLEANUP_JS = """
(options) => {
  const removeSelectors = options.removeSelectors || [];
  const structuralTags = options.structuralTags || [];
  let removed = 0;
  for (const sel of removeSelectors) {
    let nodes = [];
    try {
      nodes = document.querySelectorAll(sel);
    } catch (e) {
      continue;
    }
    nodes.forEach((el) => {
      const tag = (el.tagName || '').toLowerCase();
      if (structuralTags.indexOf(tag) >= 0) return;
      el.remove();
      removed++;
    });
  }

  let unstuck = 0;
  const all = document.body ? document.body.getElementsByTagName('*') : [];
  for (let i = 0; i < all.length; i++) {
    const el = all[i];
    const tag = (el.tagName || '').toLowerCase();
    if (structuralTags.indexOf(tag) >= 0) continue;
    const position = window.getComputedStyle(el).position;
    if (position === 'fixed' || position === 'sticky') {
      el.style.setProperty('position', 'static', 'important');
      unstuck++;
    }
  }

  for (const root of [document.documentElement, document.body]) {
    if (!root) continue;
    root.style.setProperty('overflow', 'visible', 'important');
    if (root.style.position === 'fixed') root.style.setProperty('position', 'static');
  }
  return { removed, unstuck };
}
"""


@dataclass(frozen=True)
class PreCaptureTransform:
    """
    A named, versioned page-side script evaluated right before capture.

    The script must be a JS function expression taking one options argument.
    """

    name: str
    version: str
    script: str
    options: dict | None = None

    @classmethod
    def from_file(cls, path: str | Path, version: str = "file") -> "PreCaptureTransform":
        """
        Load a transform script from disk. The file stem becomes the name.

        Raises OSError if unreadable and ValueError if the file is empty.
        """
        source = Path(path)
        script = source.read_text(encoding="utf-8").strip()
        if not script:
            raise ValueError(f"Pre-capture transform script is empty: {source}")
        return cls(name=source.stem, version=version, script=script, options={})

    async def apply(self, page: Page) -> object:
        """Evaluate the script in the page's main frame and return its result."""
        result = await page.evaluate(self.script, self.options or {})
        logger.debug(
            "pre_capture_transform_applied",
            transform=self.name,
            transform_version=self.version,
            result=result,
        )
        return result


DEFAULT_CLEANUP = PreCaptureTransform(
    name="dom-cleanup",
    version="1",
    script=_CLEANUP_JS,
    options={
        "removeSelectors": list(CONSENT_SELECTORS + AD_SELECTORS),
        "structuralTags": list(STRUCTURAL_TAGS),
    },
)
