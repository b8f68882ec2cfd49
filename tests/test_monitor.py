import asyncio
from types import SimpleNamespace

import pytest

from x_agent.core.models import ScrapeBudget
from x_agent.scrapers.monitor import FeedMonitor
from x_agent.scrapers.page_utils import FeedKind
from x_agent.scrapers.paginator import Paginator

from conftest import FakeFeedPage, StepClock, post_element


def items(*ids):
    return [post_element(str(i)) for i in ids]


@pytest.fixture
def page():
    return FakeFeedPage([items(5, 4, 3, 2, 1)])


@pytest.fixture
def monitor(resolver, logs):
    loads = []

    async def loader(page, kind):
        loads.append(kind)

    paginator = Paginator(resolver, clock=StepClock(0.1))
    feed_monitor = FeedMonitor(paginator, log_func=logs.append, loader=loader)
    feed_monitor.loads = loads
    return feed_monitor


BUDGET = ScrapeBudget(target_count=10, timeout=5, scroll_delay=0, growth_timeout=0)


async def test_seed_is_silent_and_tick_reports_only_new_items(monitor, page):
    received = []
    await monitor.start(SimpleNamespace(page=page), FeedKind.FOLLOWING, received.append,
                        poll_interval=3600, budget=BUDGET)
    assert received == []
    assert monitor.seen == {"1", "2", "3", "4", "5"}

    page.replace_items(items(7, 6, 5, 4, 3, 2, 1))
    new_items = await monitor.tick()

    assert [p.post_id for p in new_items] == ["7", "6"]
    assert [[p.post_id for p in batch] for batch in received] == [["7", "6"]]
    assert len(monitor.seen) == 7

    assert await monitor.tick() == []
    assert len(received) == 1

    monitor.stop()
    await monitor.wait()
    assert not monitor.running


async def test_background_loop_delivers_to_async_callback_until_stopped(monitor, page):
    received = []

    async def on_new(batch):
        received.append([p.post_id for p in batch])

    stop = await monitor.start(SimpleNamespace(page=page), FeedKind.FOR_YOU, on_new,
                               poll_interval=0.01, budget=BUDGET)
    page.replace_items(items(7, 6, 5, 4, 3, 2, 1))

    for _ in range(200):
        if received:
            break
        await asyncio.sleep(0.01)

    stop()
    await monitor.wait()

    assert received == [["7", "6"]]
    assert monitor.loads[0] is FeedKind.FOR_YOU
    assert not monitor.running


async def test_failing_tick_is_logged_and_loop_continues(monitor, page, logs):
    calls = {"n": 0}
    original = monitor.loader

    async def flaky_loader(p, kind):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("page crashed")
        await original(p, kind)

    monitor.loader = flaky_loader
    await monitor.start(SimpleNamespace(page=page), FeedKind.FOLLOWING, lambda batch: None,
                        poll_interval=0.01, budget=BUDGET)

    for _ in range(200):
        if calls["n"] >= 3:
            break
        await asyncio.sleep(0.01)

    monitor.stop()
    await monitor.wait()

    assert calls["n"] >= 3
    assert any("page crashed" in line for line in logs)


async def test_cannot_start_twice(monitor, page):
    await monitor.start(SimpleNamespace(page=page), FeedKind.FOLLOWING, lambda b: None,
                        poll_interval=3600, budget=BUDGET)
    with pytest.raises(RuntimeError):
        await monitor.start(SimpleNamespace(page=page), FeedKind.FOLLOWING, lambda b: None,
                            poll_interval=3600, budget=BUDGET)
    monitor.stop()
    await monitor.wait()


async def test_batch_rejected_by_callback_is_not_redelivered(monitor, page):
    received = []

    def on_new(batch):
        received.append([p.post_id for p in batch])
        if len(received) == 1:
            raise RuntimeError("sink unavailable")

    await monitor.start(SimpleNamespace(page=page), FeedKind.FOLLOWING, on_new,
                        poll_interval=3600, budget=BUDGET)
    page.replace_items(items(6, 5, 4, 3, 2, 1))

    with pytest.raises(RuntimeError):
        await monitor.tick()
    assert await monitor.tick() == []
    assert received == [["6"]]
    assert "6" in monitor.seen

    monitor.stop()
    await monitor.wait()
