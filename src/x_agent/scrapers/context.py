"""Shared handles for the feed operations of one authenticated page."""

from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.config import ConfigManager
from ..core.constants import DEFAULT_PAGE_LOAD_TIMEOUT, DEFAULT_TARGET_COUNT
from ..core.models import ScrapeBudget
from ..utils.locator import LocatorResolver
from ..utils.logger import null_log
from .extractor import ContentExtractor
from .page_utils import dismiss_popups, wait_until_ready
from .paginator import Paginator


@dataclass
class ScrapeContext:
    page: Any
    resolver: LocatorResolver
    config: ConfigManager = field(default_factory=lambda: ConfigManager(None))
    log: Any = null_log
    extractor: Optional[ContentExtractor] = None
    paginator: Optional[Paginator] = None

    def __post_init__(self):
        if self.extractor is None:
            self.extractor = ContentExtractor(self.resolver, log_func=self.log)
        if self.paginator is None:
            self.paginator = Paginator(self.resolver, self.extractor, log_func=self.log)

    @classmethod
    def from_session(cls, session, manager) -> "ScrapeContext":
        """Build from a Session and the SessionManager that acquired it."""
        return cls(session.page, manager.resolver, manager.config, manager.log)

    @property
    def page_load_timeout(self) -> float:
        return self.config.get("timeouts.page_load", DEFAULT_PAGE_LOAD_TIMEOUT)

    def budget(self, target_count: Optional[int] = None) -> ScrapeBudget:
        """A ScrapeBudget from the configured timeouts."""
        return ScrapeBudget(
            target_count=target_count or self.config.get("limits.max_posts", DEFAULT_TARGET_COUNT),
            timeout=self.config.get("timeouts.scrape"),
            scroll_delay=self.config.get("timeouts.scroll_wait"),
            growth_timeout=self.config.get("timeouts.growth_wait"),
        )

    async def open(self, url: str, ready_role: Optional[str] = "feed_item") -> bool:
        """Navigate, wait for content and clear popups. False if nothing rendered."""
        self.log(f"Navigating to {url}")
        timeout = self.page_load_timeout
        await self.page.goto(url, timeout=timeout * 1000, wait_until="domcontentloaded")
        ready = True
        if ready_role:
            ready = await wait_until_ready(self.page, self.resolver, timeout=timeout,
                                           role=ready_role, log_func=self.log)
        await dismiss_popups(self.page, self.resolver, log_func=self.log)
        return ready
