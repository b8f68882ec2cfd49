"""
Comment Scraping
================
Replies under a status page. The focal post is identified from the URL and
excluded from its own reply list.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..core.models import Comment, RecordKind, ScrapeBudget, ScrapeResult
from .context import ScrapeContext
from .extractor import status_id

DEFAULT_REPLIES_WAIT = 10.0


@dataclass(frozen=True)
class CommentThread:
    main_comment: Optional[Comment]
    replies: ScrapeResult

    def to_dict(self):
        return {
            "main_comment": self.main_comment.to_dict() if self.main_comment else None,
            "replies": self.replies.to_dict(),
        }


async def _open_status(ctx: ScrapeContext, url: str) -> None:
    if url not in (ctx.page.url or ""):
        await ctx.open(url)
    await ctx.resolver.wait_for(ctx.page, "replies_region", DEFAULT_REPLIES_WAIT)


async def scrape_comments(ctx: ScrapeContext, post_url: str,
                          budget: Optional[ScrapeBudget] = None) -> ScrapeResult:
    """Replies to the post at ``post_url``, in first-seen order."""
    await _open_status(ctx, post_url)
    focal_id = status_id(post_url)
    return await ctx.paginator.paginate(
        ctx.page,
        budget or ctx.budget(),
        kind=RecordKind.COMMENT,
        exclude=[focal_id] if focal_id else (),
    )


async def scrape_comment_thread(ctx: ScrapeContext, comment_url: str,
                                budget: Optional[ScrapeBudget] = None) -> CommentThread:
    """A comment together with the replies beneath it."""
    await _open_status(ctx, comment_url)

    main_comment = None
    focal = await ctx.resolver.resolve(ctx.page, "feed_item")
    if focal:
        main_comment = await ctx.extractor.extract_comment(focal.handle)

    replies = await scrape_comments(ctx, comment_url, budget)
    return CommentThread(main_comment, replies)


def top_comments(comments: Iterable[Comment], limit: int = 10) -> List[Comment]:
    """Highest likes + replies first; ties keep their original order."""
    ranked = sorted(comments, key=lambda c: c.likes + c.replies, reverse=True)
    return ranked[:limit]
