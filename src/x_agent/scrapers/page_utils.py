"""
Page Helpers
============
Small page-level routines shared by the feed operations: readiness waits,
popup dismissal, home navigation and timeline tab switching.
"""

import asyncio
from enum import Enum

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..core.constants import DEFAULT_PAGE_LOAD_TIMEOUT, X_HOME_URL
from ..utils.anti_detection import human_delay
from ..utils.locator import LocatorResolver
from ..utils.logger import null_log


class FeedKind(str, Enum):
    FOR_YOU = "for-you"
    FOLLOWING = "following"
    CURRENT = "current"  # whatever feed the page already shows


TAB_LABELS = {
    FeedKind.FOR_YOU: "For you",
    FeedKind.FOLLOWING: "Following",
}

SCROLL_HEIGHT_JS = "document.body.scrollHeight"
SCROLL_TO_BOTTOM_JS = "window.scrollTo(0, document.body.scrollHeight)"
HEIGHT_GREW_JS = "(previous) => document.body.scrollHeight > previous"


async def wait_until_ready(page, resolver: LocatorResolver,
                           timeout: float = DEFAULT_PAGE_LOAD_TIMEOUT,
                           role: str = "feed_item", log_func=None) -> bool:
    """Wait for the first feed item to render. False on timeout."""
    log = log_func or null_log
    try:
        await page.wait_for_load_state("domcontentloaded", timeout=timeout * 1000)
    except PlaywrightTimeoutError:
        log("  Page load state not reached, checking content anyway")

    found = await resolver.wait_for(page, role, timeout)
    if not found:
        log(f"  No '{role}' rendered within {timeout:.0f}s")
    return bool(found)


async def scroll_and_wait(page, scroll_delay: float, growth_timeout: float) -> bool:
    """
    Scroll to the bottom and wait for the document to grow.

    Returns False when no new content arrived within ``growth_timeout``;
    that is a normal end-of-feed signal, not an error.
    """
    previous = await page.evaluate(SCROLL_HEIGHT_JS)
    await page.evaluate(SCROLL_TO_BOTTOM_JS)
    await asyncio.sleep(scroll_delay)

    if growth_timeout <= 0:
        return False
    try:
        await page.wait_for_function(HEIGHT_GREW_JS, arg=previous,
                                     timeout=growth_timeout * 1000)
        return True
    except PlaywrightTimeoutError:
        return False


async def dismiss_popups(page, resolver: LocatorResolver, log_func=None) -> int:
    """Refuse the cookie banner and close any modal. Returns how many were closed."""
    log = log_func or null_log
    closed = 0
    for role in ("cookie_refuse", "close_button"):
        found = await resolver.resolve(page, role)
        if not found:
            continue
        try:
            await found.handle.click()
            closed += 1
            log(f"  Dismissed popup ({role})")
            await human_delay(0.3, 0.8)
        except Exception as e:
            log(f"  Could not dismiss popup ({role}): {e}")
    return closed


async def go_home(page, resolver: LocatorResolver, url: str = X_HOME_URL,
                  timeout: float = DEFAULT_PAGE_LOAD_TIMEOUT, log_func=None) -> None:
    """Open the home feed and get the cookie banner out of the way."""
    log = log_func or null_log
    log(f"Navigating to {url}")
    await page.goto(url, timeout=timeout * 1000, wait_until="domcontentloaded")
    if await resolver.exists(page, "cookie_banner"):
        await dismiss_popups(page, resolver, log_func=log)


async def switch_timeline_tab(page, resolver: LocatorResolver, kind: FeedKind,
                              timeout: float = 10.0, log_func=None) -> bool:
    """Select the For you / Following tab on the home feed."""
    log = log_func or null_log
    label = TAB_LABELS.get(kind)
    if label is None:
        return True

    tab = await resolver.wait_for(page, "timeline_tab", timeout, tab=label)
    if not tab:
        log(f"  Timeline tab '{label}' not found")
        return False

    if await tab.handle.get_attribute("aria-selected") != "true":
        await tab.handle.click()
        await human_delay(1.0, 2.0)
    log(f"  Timeline tab: {label}")
    return True


async def load_feed(page, resolver: LocatorResolver, kind: FeedKind,
                    home_url: str = X_HOME_URL,
                    timeout: float = DEFAULT_PAGE_LOAD_TIMEOUT, log_func=None) -> bool:
    """(Re)load a feed so its newest items are rendered at the top."""
    if kind is FeedKind.CURRENT:
        await page.reload(timeout=timeout * 1000, wait_until="domcontentloaded")
    else:
        await go_home(page, resolver, url=home_url, timeout=timeout, log_func=log_func)
        await switch_timeline_tab(page, resolver, kind, timeout=timeout, log_func=log_func)
    return await wait_until_ready(page, resolver, timeout=timeout, log_func=log_func)
