"""
Timeline Scraping
=================
Home timeline tabs (For you / Following), plus filters built on top of a
timeline scrape and the long-running timeline monitor.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from ..core.constants import DEFAULT_MONITOR_TARGET, DEFAULT_POLL_INTERVAL
from ..core.models import Post, ScrapeBudget, ScrapeResult
from .context import ScrapeContext
from .monitor import FeedMonitor, NewItemsCallback
from .page_utils import FeedKind, load_feed


async def scrape_timeline(ctx: ScrapeContext, kind: FeedKind = FeedKind.FOR_YOU,
                          budget: Optional[ScrapeBudget] = None) -> ScrapeResult:
    kind = FeedKind(kind)
    await load_feed(ctx.page, ctx.resolver, kind, home_url=ctx.config.get("urls.home"),
                    timeout=ctx.page_load_timeout, log_func=ctx.log)
    ctx.log(f"Scraping {kind.value} timeline...")
    result = await ctx.paginator.paginate(ctx.page, budget or ctx.budget())
    ctx.log(f"Scraped {len(result)} posts from {kind.value} timeline")
    return result


async def scrape_both_timelines(ctx: ScrapeContext,
                                budget: Optional[ScrapeBudget] = None) -> Dict[str, ScrapeResult]:
    return {
        FeedKind.FOR_YOU.value: await scrape_timeline(ctx, FeedKind.FOR_YOU, budget),
        FeedKind.FOLLOWING.value: await scrape_timeline(ctx, FeedKind.FOLLOWING, budget),
    }


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def posts_since(posts: Iterable[Post], since: datetime) -> List[Post]:
    """Posts strictly newer than ``since``; posts without a timestamp are dropped."""
    cutoff = _aware(since)
    return [p for p in posts if p.timestamp is not None and _aware(p.timestamp) > cutoff]


def posts_by_authors(posts: Iterable[Post], usernames: Iterable[str]) -> List[Post]:
    wanted = {u.lstrip("@").lower() for u in usernames}
    return [p for p in posts if p.author.username.lower() in wanted]


async def latest_posts(ctx: ScrapeContext, since: datetime,
                       kind: FeedKind = FeedKind.FOR_YOU,
                       max_posts: int = 100) -> List[Post]:
    result = await scrape_timeline(ctx, kind, ctx.budget(max_posts))
    return posts_since(result.records, since)


async def posts_from_users(ctx: ScrapeContext, usernames: Iterable[str],
                           kind: FeedKind = FeedKind.FOLLOWING,
                           budget: Optional[ScrapeBudget] = None) -> List[Post]:
    result = await scrape_timeline(ctx, kind, budget)
    return posts_by_authors(result.records, usernames)


async def monitor_timeline(ctx: ScrapeContext, kind: FeedKind, on_new_posts: NewItemsCallback,
                           poll_interval: float = DEFAULT_POLL_INTERVAL,
                           budget: Optional[ScrapeBudget] = None) -> Callable[[], None]:
    """Start a FeedMonitor on the given timeline tab and return its stop function."""
    async def reload_tab(page, feed_kind: FeedKind) -> None:
        await load_feed(page, ctx.resolver, feed_kind, home_url=ctx.config.get("urls.home"),
                        timeout=ctx.page_load_timeout, log_func=ctx.log)

    monitor = FeedMonitor(ctx.paginator, log_func=ctx.log, loader=reload_tab)
    budget = budget or ctx.budget(ctx.config.get("limits.monitor_posts", DEFAULT_MONITOR_TARGET))
    return await monitor.start(ctx, kind, on_new_posts, poll_interval, budget)
