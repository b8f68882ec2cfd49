"""
Feed Monitor
============
Polls a feed and reports only the items that were not there before.

The first run seeds the seen set silently; every later tick reloads the
feed, paginates it, and hands the newly appeared items to the callback in
first-seen order. Stopping is cooperative: the stop function flips a flag
that is checked between ticks, so a tick in progress always completes.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, List, Optional, Set

from ..core.constants import DEFAULT_MONITOR_TARGET, DEFAULT_POLL_INTERVAL
from ..core.models import ScrapeBudget
from ..utils.logger import null_log
from .page_utils import FeedKind, load_feed
from .paginator import Paginator

NewItemsCallback = Callable[[List[Any]], Optional[Awaitable[None]]]
FeedLoader = Callable[[Any, FeedKind], Awaitable[Any]]


class FeedMonitor:
    """
    Usage:
        monitor = FeedMonitor(paginator, log_func=log)
        stop = await monitor.start(session, FeedKind.FOLLOWING, on_new_items, 60)
        ...
        stop()
        await monitor.wait()
    """

    def __init__(self, paginator: Paginator, log_func=None,
                 loader: Optional[FeedLoader] = None):
        self.paginator = paginator
        self.log = log_func or null_log
        self.loader = loader or self._default_loader

        self.seen: Set[str] = set()
        self.ticks = 0
        self._page = None
        self._feed_kind = FeedKind.CURRENT
        self._budget = ScrapeBudget(target_count=DEFAULT_MONITOR_TARGET)
        self._on_new_items: Optional[NewItemsCallback] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    async def _default_loader(self, page, feed_kind: FeedKind) -> None:
        await load_feed(page, self.paginator.resolver, feed_kind, log_func=self.log)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _collect(self) -> List[Any]:
        await self.loader(self._page, self._feed_kind)
        result = await self.paginator.paginate(self._page, self._budget)
        return list(result.records)

    async def seed(self) -> int:
        """Fill the seen set from the current feed without reporting anything."""
        records = await self._collect()
        self.seen.update(r.identity for r in records)
        self.log(f"Monitor seeded with {len(self.seen)} items")
        return len(records)

    async def tick(self) -> List[Any]:
        """
        One poll cycle. Returns (and reports) the new items, oldest-seen first.

        New items join the seen set before the callback runs, so a batch the
        callback fails on is not delivered again.
        """
        self.ticks += 1
        records = await self._collect()
        new_items = [r for r in records if r.identity not in self.seen]
        self.seen.update(r.identity for r in new_items)

        if new_items:
            self.log(f"Monitor tick {self.ticks}: {len(new_items)} new item(s)")
            if self._on_new_items is not None:
                outcome = self._on_new_items(new_items)
                if inspect.isawaitable(outcome):
                    await outcome
        else:
            self.log(f"Monitor tick {self.ticks}: nothing new")
        return new_items

    async def start(self, session, feed_kind: FeedKind, on_new_items: NewItemsCallback,
                    poll_interval: float = DEFAULT_POLL_INTERVAL,
                    budget: Optional[ScrapeBudget] = None) -> Callable[[], None]:
        """
        Seed, then poll in a background task. Returns the stop function.

        ``session`` is anything with a ``page`` attribute.
        """
        if self.running:
            raise RuntimeError("Monitor is already running")

        self._page = session.page
        self._feed_kind = FeedKind(feed_kind)
        self._on_new_items = on_new_items
        if budget is not None:
            self._budget = budget

        await self.seed()

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(poll_interval))
        self.log(f"Monitoring {self._feed_kind.value} feed every {poll_interval:.0f}s")
        return self.stop

    def stop(self) -> None:
        if self._stop_event is not None and not self._stop_event.is_set():
            self.log("Monitor stop requested")
            self._stop_event.set()

    async def wait(self) -> None:
        """Wait for the background loop to finish after stop()."""
        if self._task is not None:
            await self._task

    async def _loop(self, poll_interval: float) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=poll_interval)
            except asyncio.TimeoutError:
                pass
            if self._stop_event.is_set():
                break

            try:
                await self.tick()
            except Exception as e:
                self.log(f"Monitor tick {self.ticks} failed: {e}")

        self.log(f"Monitor stopped after {self.ticks} tick(s)")
