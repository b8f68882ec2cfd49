"""
Data Model
==========
Immutable records produced by the extractor, plus the budget and result
types of a pagination run.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .constants import (
    DEFAULT_GROWTH_TIMEOUT,
    DEFAULT_SCRAPE_TIMEOUT,
    DEFAULT_SCROLL_DELAY,
    DEFAULT_TARGET_COUNT,
)


def engagement_rate(likes: int, reshares: int, replies: int, impressions: int) -> float:
    """Percentage of impressions that turned into likes, reshares or replies."""
    if impressions == 0:
        return 0.0
    return (likes + reshares + replies) / impressions * 100


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class RecordKind(str, Enum):
    POST = "post"
    COMMENT = "comment"
    PROFILE = "profile"


@dataclass(frozen=True)
class Author:
    user_id: str = ""
    username: str = ""
    display_name: str = ""
    avatar_url: str = ""
    is_verified: bool = False
    is_blue_verified: bool = False


@dataclass(frozen=True)
class Media:
    type: str  # image | video | gif
    url: str
    thumbnail_url: Optional[str] = None


@dataclass(frozen=True)
class Metrics:
    likes: int = 0
    reshares: int = 0
    quotes: int = 0
    replies: int = 0
    impressions: int = 0
    bookmarks: int = 0

    @property
    def engagement_rate(self) -> float:
        return engagement_rate(self.likes, self.reshares, self.replies, self.impressions)


@dataclass(frozen=True)
class Post:
    post_id: str
    url: str
    author: Author = field(default_factory=Author)
    content: str = ""
    timestamp: Optional[datetime] = None
    media: Tuple[Media, ...] = ()
    metrics: Metrics = field(default_factory=Metrics)
    is_repost: bool = False
    reposted_by: Optional[Author] = None

    kind = RecordKind.POST

    @property
    def identity(self) -> str:
        return self.post_id

    @property
    def engagement_rate(self) -> float:
        return self.metrics.engagement_rate

    def to_dict(self) -> Dict[str, Any]:
        data = _jsonable(asdict(self))
        data["engagement_rate"] = self.engagement_rate
        return data


@dataclass(frozen=True)
class Comment:
    comment_id: str
    url: str
    author: Author = field(default_factory=Author)
    content: str = ""
    timestamp: Optional[datetime] = None
    media: Tuple[Media, ...] = ()
    metrics: Metrics = field(default_factory=Metrics)
    parent_id: Optional[str] = None
    parent_url: Optional[str] = None

    kind = RecordKind.COMMENT

    @property
    def identity(self) -> str:
        return self.comment_id

    @property
    def likes(self) -> int:
        return self.metrics.likes

    @property
    def replies(self) -> int:
        return self.metrics.replies

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class Profile:
    username: str
    display_name: str = ""
    avatar_url: str = ""
    banner_url: str = ""
    bio: str = ""
    location: str = ""
    website: str = ""
    joined_date: Optional[datetime] = None
    following_count: int = 0
    followers_count: int = 0
    posts_count: int = 0
    is_verified: bool = False
    is_blue_verified: bool = False
    is_following: bool = False
    is_followed_by: bool = False
    latest_posts: Tuple[Post, ...] = ()

    kind = RecordKind.PROFILE

    @property
    def user_id(self) -> str:
        # The page exposes no numeric id; the handle is the stable identity.
        return self.username

    @property
    def identity(self) -> str:
        return self.username

    def to_dict(self) -> Dict[str, Any]:
        data = _jsonable(asdict(self))
        data["user_id"] = self.user_id
        data["latest_posts"] = [p.to_dict() for p in self.latest_posts]
        return data


@dataclass(frozen=True)
class ScrapeBudget:
    """Bounds of one pagination run. All durations are in seconds."""
    target_count: int = DEFAULT_TARGET_COUNT
    timeout: float = DEFAULT_SCRAPE_TIMEOUT
    scroll_delay: float = DEFAULT_SCROLL_DELAY
    growth_timeout: float = DEFAULT_GROWTH_TIMEOUT

    def __post_init__(self):
        if self.target_count < 1:
            raise ValueError("target_count must be at least 1")
        if self.timeout < 0 or self.scroll_delay < 0 or self.growth_timeout < 0:
            raise ValueError("budget durations must not be negative")


class ScrapeOutcome(str, Enum):
    TARGET_REACHED = "target_reached"
    BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass(frozen=True)
class ScrapeResult:
    records: Tuple[Any, ...]
    outcome: ScrapeOutcome
    skipped: int = 0
    elapsed: float = 0.0

    def __iter__(self):
        return iter(self.records)

    def __len__(self):
        return len(self.records)

    @property
    def budget_exhausted(self) -> bool:
        return self.outcome is ScrapeOutcome.BUDGET_EXHAUSTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "count": len(self.records),
            "skipped": self.skipped,
            "elapsed_seconds": round(self.elapsed, 2),
            "records": [r.to_dict() for r in self.records],
        }
