"""Post scraping on the currently open page or a single status page."""

from typing import Optional

from ..core.models import Post, ScrapeBudget, ScrapeResult
from .context import ScrapeContext


async def scrape_posts(ctx: ScrapeContext, budget: Optional[ScrapeBudget] = None) -> ScrapeResult:
    """Paginate whatever feed the page is showing."""
    return await ctx.paginator.paginate(ctx.page, budget or ctx.budget())


async def scrape_single_post(ctx: ScrapeContext, post_url: str) -> Optional[Post]:
    """The focal post of a status page, or None if it is missing or promoted."""
    if not await ctx.open(post_url):
        return None

    focal = await ctx.resolver.resolve(ctx.page, "feed_item")
    if not focal:
        return None
    return await ctx.extractor.extract_post(focal.handle)
