"""
Search Scraping
===============
Advanced search query building, search presets and trending topics.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Union
from urllib.parse import urlencode

from ..core.constants import X_EXPLORE_URL, X_SEARCH_URL
from ..core.models import ScrapeBudget, ScrapeResult
from .context import ScrapeContext

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class SearchOptions:
    query: str = ""
    from_user: Optional[str] = None
    to_user: Optional[str] = None
    min_likes: int = 0
    min_reshares: int = 0
    min_replies: int = 0
    include_replies: Optional[bool] = None  # None leaves replies unfiltered
    only_verified: bool = False
    has_media: bool = False
    language: Optional[str] = None
    date_from: Optional[DateLike] = None
    date_to: Optional[DateLike] = None
    latest: bool = True  # "Latest" tab instead of "Top"


def _day(value: DateLike) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def build_query(options: SearchOptions) -> str:
    """The advanced-search operator string for ``options``."""
    terms = []
    if options.query:
        terms.append(options.query)
    if options.from_user:
        terms.append(f"(from:{options.from_user.lstrip('@')})")
    if options.to_user:
        terms.append(f"(to:{options.to_user.lstrip('@')})")
    if options.min_likes:
        terms.append(f"min_faves:{options.min_likes}")
    if options.min_reshares:
        terms.append(f"min_retweets:{options.min_reshares}")
    if options.min_replies:
        terms.append(f"min_replies:{options.min_replies}")
    if options.include_replies is False:
        terms.append("-filter:replies")
    if options.only_verified:
        terms.append("filter:verified")
    if options.has_media:
        terms.append("filter:media")
    if options.language:
        terms.append(f"lang:{options.language}")
    if options.date_from:
        terms.append(f"since:{_day(options.date_from)}")
    if options.date_to:
        terms.append(f"until:{_day(options.date_to)}")
    return " ".join(terms)


def build_search_url(options: SearchOptions, base_url: str = X_SEARCH_URL) -> str:
    params = {"q": build_query(options), "src": "typed_query"}
    if options.latest:
        params["f"] = "live"
    return f"{base_url}?{urlencode(params)}"


class SearchPresets:
    """Common search shapes."""

    @staticmethod
    def viral(query: str, min_likes: int = 1000) -> SearchOptions:
        return SearchOptions(query=query, min_likes=min_likes, min_reshares=100,
                             include_replies=False)

    @staticmethod
    def with_media(query: str) -> SearchOptions:
        return SearchOptions(query=query, has_media=True, include_replies=False)

    @staticmethod
    def verified_only(query: str) -> SearchOptions:
        return SearchOptions(query=query, only_verified=True, include_replies=False)

    @staticmethod
    def from_user(username: str, query: str = "") -> SearchOptions:
        return SearchOptions(query=query, from_user=username.lstrip("@"), include_replies=False)

    @staticmethod
    def recent(query: str, days: int = 7, today: Optional[date] = None) -> SearchOptions:
        today = today or date.today()
        return SearchOptions(query=query, date_from=today - timedelta(days=days),
                             include_replies=False)

    @staticmethod
    def conversation(user1: str, user2: str) -> SearchOptions:
        return SearchOptions(from_user=user1.lstrip("@"), to_user=user2.lstrip("@"),
                             include_replies=True)


async def search(ctx: ScrapeContext, options: SearchOptions,
                 budget: Optional[ScrapeBudget] = None) -> ScrapeResult:
    url = build_search_url(options)
    ctx.log(f"Searching: {build_query(options)!r}")
    if not await ctx.open(url):
        ctx.log("  Search returned no rendered results")
    result = await ctx.paginator.paginate(ctx.page, budget or ctx.budget())
    ctx.log(f"Found {len(result)} posts matching search criteria")
    return result


async def search_viral(ctx: ScrapeContext, query: str, min_likes: int = 1000,
                       budget: Optional[ScrapeBudget] = None) -> ScrapeResult:
    return await search(ctx, SearchPresets.viral(query, min_likes), budget)


async def scrape_trending_topics(ctx: ScrapeContext, limit: Optional[int] = None) -> List[str]:
    """Trend names from the explore page, skipping "category · n posts" lines."""
    await ctx.open(X_EXPLORE_URL, ready_role="trend_item")

    trends: List[str] = []
    for item in await ctx.resolver.resolve_all(ctx.page, "trend_item"):
        found = await ctx.resolver.resolve(item, "trend_text")
        if not found:
            continue
        try:
            text = ((await found.handle.text_content()) or "").strip()
        except Exception as e:
            ctx.log(f"  Could not read trend: {e}")
            continue
        if text and "·" not in text and text not in trends:
            trends.append(text)
        if limit and len(trends) >= limit:
            break

    ctx.log(f"Found {len(trends)} trending topics")
    return trends
