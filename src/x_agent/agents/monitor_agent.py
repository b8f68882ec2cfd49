"""
Monitor Agent
=============
Watches a home timeline tab and streams newly appeared posts as JSON lines,
to stdout or appended to --output.
"""

import asyncio
import json
import sys
from typing import List, Optional

from ..core.constants import DEFAULT_POLL_INTERVAL
from ..core.models import Post, ScrapeBudget
from ..scrapers.monitor import FeedMonitor
from ..scrapers.page_utils import FeedKind
from .base_agent import BaseAgent


class MonitorAgent(BaseAgent):
    def __init__(self, kind: FeedKind = FeedKind.FOLLOWING,
                 poll_interval: Optional[float] = None,
                 budget: Optional[ScrapeBudget] = None,
                 duration: Optional[float] = None, **kwargs):
        super().__init__(**kwargs)
        self.kind = FeedKind(kind)
        self.poll_interval = poll_interval or self.get_config("timeouts.poll_interval",
                                                              DEFAULT_POLL_INTERVAL)
        self.budget = budget
        self.duration = duration
        self.monitor: Optional[FeedMonitor] = None
        self.emitted = 0

    def get_agent_name(self) -> str:
        return "MonitorAgent"

    def emit(self, posts: List[Post]) -> None:
        lines = [json.dumps(p.to_dict(), ensure_ascii=False) for p in posts]
        if self.output_path:
            with open(self.output_path, "a", encoding="utf-8") as f:
                f.write("\n".join(lines) + "\n")
        else:
            sys.stdout.write("\n".join(lines) + "\n")
            sys.stdout.flush()
        self.emitted += len(posts)
        for post in posts:
            self.log(f"  New post by @{post.author.username}: {post.url}")

    async def run(self) -> None:
        self.monitor = FeedMonitor(self.ctx.paginator, log_func=self.log)
        budget = self.budget or self.ctx.budget(self.get_config("limits.monitor_posts"))
        stop = await self.monitor.start(self.ctx, self.kind, self.emit,
                                        self.poll_interval, budget)
        try:
            if self.duration:
                await asyncio.sleep(self.duration)
            else:
                await self.monitor.wait()
        finally:
            stop()

        if self.monitor.running:
            await self.monitor.wait()
        self.log(f"Emitted {self.emitted} new post(s)")
        # Output was streamed; nothing left for on_complete to write
        return None
