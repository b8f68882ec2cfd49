"""
Content Extractor
=================
Maps one rendered element to a Post, Comment or Profile record.

- Promoted items are detected before any field is read and yield None.
- An element without a parseable status id yields None.
- Every other field is read independently: a failing lookup degrades that
  field to its default instead of discarding the record.

Extraction reads the DOM only, so running it twice on the same element gives
identical records.
"""

import re
from typing import Any, Awaitable, Optional, Tuple

from ..core.constants import X_BASE_URL
from ..core.models import Author, Comment, Media, Metrics, Post, Profile
from ..utils.locator import LocatorResolver
from ..utils.logger import null_log
from ..utils.parsing import parse_count, parse_iso_datetime, parse_joined_date

STATUS_ID_RE = re.compile(r"/status/(\d+)")
IMAGE_SIZE_RE = re.compile(r"([?&])name=\w+")


def status_id(href: Optional[str]) -> Optional[str]:
    if not href:
        return None
    match = STATUS_ID_RE.search(href)
    return match.group(1) if match else None


def absolute_url(href: str) -> str:
    return href if href.startswith("http") else f"{X_BASE_URL}{href}"


def large_image_url(src: str) -> str:
    return IMAGE_SIZE_RE.sub(r"\1name=large", src)


async def _safe(awaitable: Awaitable, default: Any) -> Any:
    """Await a single field lookup, degrading to ``default`` on any failure."""
    try:
        value = await awaitable
    except Exception:
        return default
    return default if value is None else value


class ContentExtractor:
    def __init__(self, resolver: LocatorResolver, log_func=None, base_url: str = X_BASE_URL):
        self.resolver = resolver
        self.log = log_func or null_log
        self.base_url = base_url

    # ==================== Field helpers ====================

    async def _text(self, root, role: str, **fmt) -> str:
        async def lookup():
            found = await self.resolver.resolve(root, role, **fmt)
            if not found:
                return ""
            return ((await found.handle.text_content()) or "").strip()
        return await _safe(lookup(), "")

    async def _attr(self, root, role: str, name: str, **fmt) -> str:
        async def lookup():
            found = await self.resolver.resolve(root, role, **fmt)
            if not found:
                return ""
            return (await found.handle.get_attribute(name)) or ""
        return await _safe(lookup(), "")

    async def _count(self, root, role: str, **fmt) -> int:
        return parse_count(await self._text(root, role, **fmt))

    async def _present(self, root, role: str, **fmt) -> bool:
        return await _safe(self.resolver.exists(root, role, **fmt), False)

    async def _identity_link(self, element) -> Tuple[Optional[str], Optional[str]]:
        """(status id, href) of the item's own permalink."""
        href = await self._attr(element, "item_link", "href")
        return status_id(href), href or None

    # ==================== Predicates ====================

    async def is_promoted(self, element) -> bool:
        """True for ads / promoted items."""
        return await self._present(element, "ad_marker")

    # ==================== Shared parts ====================

    async def extract_author(self, element) -> Author:
        href = await self._attr(element, "item_author_link", "href")
        username = href.strip("/").split("/")[0] if href else ""
        return Author(
            user_id=username,
            username=username,
            display_name=await self._text(element, "item_display_name"),
            avatar_url=await self._attr(element, "item_avatar", "src"),
            is_verified=await self._present(element, "item_verified_badge"),
            is_blue_verified=await self._present(element, "item_blue_badge"),
        )

    async def extract_media(self, element) -> Tuple[Media, ...]:
        media = []

        for img in await _safe(self.resolver.resolve_all(element, "item_photo"), []):
            src = await _safe(img.get_attribute("src"), "")
            if src:
                media.append(Media(type="image", url=large_image_url(src)))

        for video in await _safe(self.resolver.resolve_all(element, "item_video"), []):
            src = await _safe(video.get_attribute("src"), "")
            poster = await _safe(video.get_attribute("poster"), "")
            if src:
                kind = "gif" if "tweet_video" in src else "video"
                media.append(Media(type=kind, url=src, thumbnail_url=poster or None))
            elif poster:
                # Streamed videos expose only a blob: src; keep the poster
                media.append(Media(type="video", url=poster, thumbnail_url=poster))

        return tuple(media)

    async def extract_metrics(self, element) -> Metrics:
        return Metrics(
            likes=await self._count(element, "metric_likes"),
            reshares=await self._count(element, "metric_reshares"),
            replies=await self._count(element, "metric_replies"),
            impressions=await self._count(element, "metric_impressions"),
            bookmarks=await self._count(element, "metric_bookmarks"),
        )

    async def _repost_context(self, element) -> Tuple[bool, Optional[Author]]:
        found = await _safe(self.resolver.resolve(element, "item_social_context"), None)
        if not found:
            return False, None

        text = await _safe(found.handle.text_content(), "")
        reposted_by = None
        if "reposted" in text.lower():
            link = await _safe(found.handle.query_selector("a"), None)
            if link:
                href = await _safe(link.get_attribute("href"), "")
                name = await _safe(link.text_content(), "")
                if href:
                    handle = href.strip("/")
                    reposted_by = Author(user_id=handle, username=handle,
                                         display_name=name.strip())
        return True, reposted_by

    # ==================== Records ====================

    async def extract_post(self, element, check_promoted: bool = True) -> Optional[Post]:
        if check_promoted and await self.is_promoted(element):
            self.log("  Skipping promoted post")
            return None

        post_id, href = await self._identity_link(element)
        if not post_id:
            return None

        is_repost, reposted_by = await self._repost_context(element)
        return Post(
            post_id=post_id,
            url=absolute_url(href),
            author=await self.extract_author(element),
            content=await self._text(element, "item_text"),
            timestamp=parse_iso_datetime(await self._attr(element, "item_time", "datetime")),
            media=await self.extract_media(element),
            metrics=await self.extract_metrics(element),
            is_repost=is_repost,
            reposted_by=reposted_by,
        )

    async def extract_comment(self, element, check_promoted: bool = True) -> Optional[Comment]:
        if check_promoted and await self.is_promoted(element):
            self.log("  Skipping promoted comment")
            return None

        comment_id, href = await self._identity_link(element)
        if not comment_id:
            return None

        parent_id, parent_url = await self._parent_link(element, href)
        return Comment(
            comment_id=comment_id,
            url=absolute_url(href),
            author=await self.extract_author(element),
            content=await self._text(element, "item_text"),
            timestamp=parse_iso_datetime(await self._attr(element, "item_time", "datetime")),
            media=await self.extract_media(element),
            metrics=Metrics(
                likes=await self._count(element, "metric_likes"),
                replies=await self._count(element, "metric_replies"),
            ),
            parent_id=parent_id,
            parent_url=parent_url,
        )

    async def _parent_link(self, element, own_href: str) -> Tuple[Optional[str], Optional[str]]:
        """
        First status link in the element that is not the comment's own.

        Heuristic: in nested reply layouts this can pick up a quoted post
        instead of the actual parent.
        """
        own_id = status_id(own_href)
        for link in await _safe(self.resolver.resolve_all(element, "item_status_links"), []):
            href = await _safe(link.get_attribute("href"), "")
            if not href or href == own_href:
                continue
            parent_id = status_id(href)
            if parent_id and parent_id != own_id:
                return parent_id, absolute_url(href)
        return None, None

    async def extract_profile(self, root, username: str) -> Optional[Profile]:
        """Profile header of the currently open profile page."""
        name_block = await _safe(self.resolver.resolve(root, "profile_name_block"), None)
        if not name_block:
            return None

        block = name_block.handle
        handle_text = await self._text(block, "profile_handle")
        handle = handle_text.lstrip("@").strip() or username.lstrip("@")

        follow_text = await self._text(root, "profile_follow_button")
        return Profile(
            username=handle,
            display_name=await self._text(block, "profile_display_name"),
            avatar_url=await self._attr(root, "profile_avatar", "src"),
            banner_url=await self._attr(root, "profile_banner", "src"),
            bio=await self._text(root, "profile_bio"),
            location=await self._text(root, "profile_location"),
            website=await self._attr(root, "profile_website", "href"),
            joined_date=parse_joined_date(await self._text(root, "profile_join_date")),
            following_count=await self._count(root, "profile_following", username=handle),
            followers_count=await self._count(root, "profile_followers", username=handle),
            posts_count=await self._count(root, "profile_posts_count"),
            is_verified=await self._present(root, "profile_verified"),
            is_blue_verified=await self._present(root, "profile_blue_verified"),
            is_following=follow_text.lower().startswith("following"),
            is_followed_by=await self._present(root, "profile_follows_you"),
        )
