"""
Browser Management Utilities
============================
Browser launch, context creation and cleanup shared by every session.
"""

from typing import Any, Dict, Optional

from playwright.async_api import async_playwright
from playwright_stealth import Stealth

from ..core.constants import DEFAULT_DEVICE, DEFAULT_LAUNCH_TIMEOUT, DEFAULT_LOCALE
from .anti_detection import human_delay, human_mouse_move
from .logger import null_log


class BrowserManager:
    """
    Manages one Chromium instance driven by Playwright.

    Handles:
    - Launching Chromium (headless/headed, slow-mo, outbound proxy)
    - Creating a context from a device profile, optionally restoring
      a saved storage state (cookies + localStorage)
    - Fingerprint normalization through playwright-stealth
    - Cleanup of every layer on shutdown
    """

    def __init__(self, headless: bool = True, slow_mo: int = 0,
                 proxy: Optional[Dict[str, str]] = None,
                 device: str = DEFAULT_DEVICE, locale: str = DEFAULT_LOCALE,
                 humanize: bool = True, log_func=None):
        self.headless = headless
        self.slow_mo = slow_mo
        self.proxy = proxy
        self.device = device
        self.locale = locale
        self.humanize = humanize
        self.log = log_func or null_log
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None

    async def launch(self) -> None:
        """Start the Playwright driver and launch Chromium."""
        self.playwright = await async_playwright().start()

        launch_kwargs = {
            "headless": self.headless,
            "timeout": DEFAULT_LAUNCH_TIMEOUT,
            "slow_mo": self.slow_mo,
        }
        if self.proxy:
            launch_kwargs["proxy"] = self.proxy
            self.log(f"Using proxy {self.proxy['server']}")

        self.log(f"Launching Chromium (headless={self.headless})")
        self.browser = await self.playwright.chromium.launch(**launch_kwargs)

    async def new_context(self, storage_state: Optional[Dict[str, Any]] = None):
        """Create a context + page, restoring ``storage_state`` if given."""
        if not self.browser:
            raise RuntimeError("Browser not launched. Call launch() first.")

        context_kwargs = dict(self.playwright.devices[self.device])
        context_kwargs["locale"] = self.locale
        if storage_state is not None:
            context_kwargs["storage_state"] = storage_state

        self.context = await self.browser.new_context(**context_kwargs)
        await Stealth().apply_stealth_async(self.context)
        self.page = await self.context.new_page()

        self.log("Created browser context" + (" from saved state" if storage_state else ""))
        return self.context, self.page

    async def navigate(self, url: str, timeout: float = 30.0) -> None:
        """Navigate to a URL, with human-like pauses when enabled."""
        if self.humanize:
            await human_delay(0.5, 1.5)

        self.log(f"Navigating to {url}")
        await self.page.goto(url, timeout=timeout * 1000, wait_until="domcontentloaded")

        if self.humanize:
            await human_delay(2.0, 4.0)
            await human_mouse_move(self.page)

    async def cleanup(self) -> None:
        """Close page, context, browser and driver; every step is attempted."""
        steps = [
            ("page", self.page, "close"),
            ("context", self.context, "close"),
            ("browser", self.browser, "close"),
            ("playwright", self.playwright, "stop"),
        ]
        for name, obj, method in steps:
            if obj is None:
                continue
            try:
                await getattr(obj, method)()
            except Exception as e:
                self.log(f"Cleanup error ({name}): {e}")

        self.page = None
        self.context = None
        self.browser = None
        self.playwright = None
        self.log("Browser resources cleaned up")
