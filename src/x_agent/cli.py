"""
X Agent CLI
===========
Unified command-line interface for all X agents.

Usage:
    x-agent <command> [options]
    python -m x_agent <command> [options]

Commands:
    login         - Log in and refresh the saved auth state
    posts         - Scrape posts from a page, or a single post
    timeline      - Scrape the For you / Following timeline
    profile       - Scrape one or more profiles
    comments      - Scrape the replies under a post
    search        - Advanced search
    search-viral  - Search for viral posts
    trending      - Trending topics from the explore page
    monitor       - Stream new posts from a timeline as JSON lines
"""

import argparse
import asyncio
import sys
from datetime import date, datetime

from .core.constants import DEFAULT_POLL_INTERVAL
from .core.errors import XAgentError
from .core.models import ScrapeBudget, ScrapeOutcome, ScrapeResult
from .scrapers.page_utils import FeedKind


def _date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def _datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an ISO timestamp, got {value!r}")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="x-agent",
        description="X (Twitter) Automation Agent Suite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    x-agent login --headed
    x-agent timeline --tab following --count 20
    x-agent search "python asyncio" --min-likes 50 --output results.json
    x-agent monitor --tab following --interval 120
        """
    )

    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to configuration file (default: $X_AGENT_CONFIG or config.json)"
    )
    headless = parser.add_mutually_exclusive_group()
    headless.add_argument(
        "--headless", dest="headless", action="store_true", default=None,
        help="Run browser in headless mode"
    )
    headless.add_argument(
        "--headed", dest="headless", action="store_false",
        help="Show the browser window"
    )
    parser.set_defaults(headless=None)
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write results to this file instead of stdout"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with tracebacks on failure"
    )

    commands = parser.add_subparsers(dest="command", required=True, metavar="command")

    commands.add_parser("login", help="Log in and save the auth state")

    posts = commands.add_parser("posts", help="Scrape posts from a page")
    posts.add_argument("url", help="Page to scrape (feed, list or status URL)")
    posts.add_argument("--single", action="store_true", help="Only the focal post of a status page")
    _add_budget_args(posts)

    timeline = commands.add_parser("timeline", help="Scrape the home timeline")
    timeline.add_argument("--tab", choices=["for-you", "following", "both"], default="for-you")
    timeline.add_argument("--since", type=_datetime, help="Only posts newer than this timestamp")
    timeline.add_argument("--users", nargs="+", metavar="USERNAME",
                          help="Only posts by these accounts")
    _add_budget_args(timeline)

    profile = commands.add_parser("profile", help="Scrape profiles")
    profile.add_argument("usernames", nargs="+", metavar="USERNAME")
    profile.add_argument("--posts", type=_positive_int, default=None, metavar="N",
                         help="Also collect the N latest posts")

    comments = commands.add_parser("comments", help="Scrape replies to a post")
    comments.add_argument("url", help="Status URL")
    comments.add_argument("--thread", action="store_true",
                          help="Include the focal comment itself")
    comments.add_argument("--top", type=_positive_int, default=None, metavar="N",
                          help="Only the N most engaging replies")
    _add_budget_args(comments)

    search = commands.add_parser("search", help="Advanced search")
    search.add_argument("query", nargs="?", default="")
    search.add_argument("--from-user")
    search.add_argument("--to-user")
    search.add_argument("--min-likes", type=int, default=0)
    search.add_argument("--min-reshares", type=int, default=0)
    search.add_argument("--min-replies", type=int, default=0)
    search.add_argument("--no-replies", action="store_true", help="Exclude replies")
    search.add_argument("--verified", action="store_true", help="Verified accounts only")
    search.add_argument("--media", action="store_true", help="Posts with media only")
    search.add_argument("--lang")
    search.add_argument("--since", type=_date, dest="date_from")
    search.add_argument("--until", type=_date, dest="date_to")
    search.add_argument("--top-tab", action="store_true", help="Use the Top tab instead of Latest")
    _add_budget_args(search)

    viral = commands.add_parser("search-viral", help="Search for viral posts")
    viral.add_argument("query")
    viral.add_argument("--min-likes", type=int, default=1000)
    _add_budget_args(viral)

    trending = commands.add_parser("trending", help="Trending topics")
    trending.add_argument("--limit", type=_positive_int, default=None)

    monitor = commands.add_parser("monitor", help="Stream new timeline posts")
    monitor.add_argument("--tab", choices=["for-you", "following"], default="following")
    monitor.add_argument("--interval", type=float, default=None,
                         help=f"Seconds between polls (default: config or {DEFAULT_POLL_INTERVAL:.0f})")
    monitor.add_argument("--duration", type=float, default=None,
                         help="Stop after this many seconds (default: run until interrupted)")
    _add_budget_args(monitor)

    return parser


def _add_budget_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--count", "-n", type=_positive_int, default=None,
                        help="Number of items to collect")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Scrape time budget in seconds")


def _budget(args, ctx) -> ScrapeBudget:
    budget = ctx.budget(getattr(args, "count", None))
    if getattr(args, "timeout", None) is not None:
        budget = ScrapeBudget(budget.target_count, args.timeout,
                              budget.scroll_delay, budget.growth_timeout)
    return budget


def _filtered(result: ScrapeResult, records) -> ScrapeResult:
    return ScrapeResult(tuple(records), result.outcome, result.skipped, result.elapsed)


def build_agent(args):
    """Map parsed arguments to the agent that runs the command."""
    from .agents import LoginAgent, MonitorAgent, ScrapeAgent
    from .scrapers import comments as comment_ops
    from .scrapers import posts as post_ops
    from .scrapers import profile as profile_ops
    from .scrapers.search import SearchOptions, scrape_trending_topics, search, search_viral
    from .scrapers import timeline as timeline_ops

    common = {"config_path": args.config, "headless": args.headless, "output_path": args.output}

    if args.command == "login":
        return LoginAgent(**common)

    if args.command == "monitor":
        budget = None
        if args.count or args.timeout:
            budget = ScrapeBudget(target_count=args.count or 20, timeout=args.timeout or 30.0)
        return MonitorAgent(kind=FeedKind(args.tab), poll_interval=args.interval,
                            budget=budget, duration=args.duration, **common)

    if args.command == "posts":
        async def operation(ctx):
            if args.single:
                return await post_ops.scrape_single_post(ctx, args.url)
            await ctx.open(args.url)
            return await post_ops.scrape_posts(ctx, _budget(args, ctx))
        return ScrapeAgent("PostsAgent", operation, **common)

    if args.command == "timeline":
        async def operation(ctx):
            if args.tab == "both":
                return await timeline_ops.scrape_both_timelines(ctx, _budget(args, ctx))
            result = await timeline_ops.scrape_timeline(ctx, FeedKind(args.tab), _budget(args, ctx))
            records = result.records
            if args.since:
                records = timeline_ops.posts_since(records, args.since)
            if args.users:
                records = timeline_ops.posts_by_authors(records, args.users)
            return _filtered(result, records)
        return ScrapeAgent("TimelineAgent", operation, **common)

    if args.command == "profile":
        async def operation(ctx):
            budget = ctx.budget(args.posts) if args.posts else None
            if len(args.usernames) == 1:
                return await profile_ops.scrape_profile(ctx, args.usernames[0], budget)
            return await profile_ops.scrape_profiles(ctx, args.usernames, budget)
        return ScrapeAgent("ProfileAgent", operation, **common)

    if args.command == "comments":
        async def operation(ctx):
            if args.thread:
                return await comment_ops.scrape_comment_thread(ctx, args.url, _budget(args, ctx))
            result = await comment_ops.scrape_comments(ctx, args.url, _budget(args, ctx))
            if args.top:
                return _filtered(result, comment_ops.top_comments(result.records, args.top))
            return result
        return ScrapeAgent("CommentsAgent", operation, **common)

    if args.command == "search":
        options = SearchOptions(
            query=args.query,
            from_user=args.from_user,
            to_user=args.to_user,
            min_likes=args.min_likes,
            min_reshares=args.min_reshares,
            min_replies=args.min_replies,
            include_replies=False if args.no_replies else None,
            only_verified=args.verified,
            has_media=args.media,
            language=args.lang,
            date_from=args.date_from,
            date_to=args.date_to,
            latest=not args.top_tab,
        )
        return ScrapeAgent("SearchAgent",
                           lambda ctx: search(ctx, options, _budget(args, ctx)),
                           **common)

    if args.command == "search-viral":
        return ScrapeAgent(
            "SearchAgent",
            lambda ctx: search_viral(ctx, args.query, args.min_likes, _budget(args, ctx)),
            **common)

    if args.command == "trending":
        return ScrapeAgent("TrendingAgent",
                           lambda ctx: scrape_trending_topics(ctx, args.limit),
                           **common)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        agent = build_agent(args)
        result = asyncio.run(agent.execute())

    except KeyboardInterrupt:
        print("\nAgent interrupted by user", file=sys.stderr)
        sys.exit(130)

    except XAgentError as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    except Exception as e:
        print(f"Agent error: {e}", file=sys.stderr)
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(2)

    if isinstance(result, ScrapeResult) and result.outcome is ScrapeOutcome.BUDGET_EXHAUSTED:
        print(f"Note: time budget ran out after {len(result)} item(s)", file=sys.stderr)


if __name__ == "__main__":
    main()
