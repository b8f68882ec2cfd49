"""Profile scraping: header data plus, optionally, the latest posts."""

from dataclasses import replace
from typing import Iterable, List, Optional

from ..core.constants import X_BASE_URL
from ..core.models import Profile, ScrapeBudget
from ..utils.anti_detection import RateLimiter
from .context import ScrapeContext


def profile_url(username: str) -> str:
    return f"{X_BASE_URL}/{username.lstrip('@')}"


async def scrape_profile(ctx: ScrapeContext, username: str,
                         budget: Optional[ScrapeBudget] = None) -> Optional[Profile]:
    """
    Scrape one profile. Returns None when the account does not exist.

    With a ``budget`` the profile's latest posts are collected as well.
    """
    handle = username.lstrip("@")
    await ctx.open(profile_url(handle), ready_role="profile_name_block")

    if await ctx.resolver.exists(ctx.page, "profile_not_found"):
        ctx.log(f"Profile not found: {handle}")
        return None

    profile = await ctx.extractor.extract_profile(ctx.page, handle)
    if profile is None:
        ctx.log(f"Profile header did not render for {handle}")
        return None

    if budget is not None:
        ctx.log(f"Scraping {budget.target_count} latest posts from @{profile.username}...")
        result = await ctx.paginator.paginate(ctx.page, budget)
        profile = replace(profile, latest_posts=result.records)
    return profile


async def scrape_profiles(ctx: ScrapeContext, usernames: Iterable[str],
                          budget: Optional[ScrapeBudget] = None,
                          rate_limiter: Optional[RateLimiter] = None) -> List[Profile]:
    """Scrape several profiles in turn, pausing between them. Missing accounts are left out."""
    rate_limiter = rate_limiter or RateLimiter()
    profiles = []
    for username in usernames:
        await rate_limiter.wait(log_func=ctx.log)
        ctx.log(f"Scraping profile: {username}")
        profile = await scrape_profile(ctx, username, budget)
        if profile is not None:
            profiles.append(profile)
    return profiles
