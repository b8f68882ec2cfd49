"""Feed operations built on the extractor, paginator and monitor."""

from .comments import CommentThread, scrape_comment_thread, scrape_comments, top_comments
from .context import ScrapeContext
from .extractor import ContentExtractor
from .monitor import FeedMonitor
from .page_utils import FeedKind, dismiss_popups, go_home, scroll_and_wait, wait_until_ready
from .paginator import Paginator
from .posts import scrape_posts, scrape_single_post
from .profile import scrape_profile, scrape_profiles
from .search import (
    SearchOptions, SearchPresets, build_search_url, scrape_trending_topics,
    search, search_viral,
)
from .timeline import (
    latest_posts, monitor_timeline, posts_from_users, scrape_both_timelines,
    scrape_timeline,
)
