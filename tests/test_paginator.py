from x_agent.core.models import RecordKind, ScrapeBudget, ScrapeOutcome
from x_agent.scrapers.extractor import ContentExtractor
from x_agent.scrapers.paginator import Paginator

from conftest import FakeFeedPage, StepClock, post_element


def batch(*ids):
    return [post_element(str(i)) for i in ids]


async def test_collects_exactly_target_count_distinct_posts_in_first_seen_order(resolver):
    # Every scroll re-renders earlier items, as a virtualized feed does
    page = FakeFeedPage([batch(1, 2, 3), batch(3, 4, 5), batch(5, 6, 7, 8)])
    budget = ScrapeBudget(target_count=6, timeout=30, scroll_delay=0, growth_timeout=1)

    result = await Paginator(resolver).paginate(page, budget)

    assert result.outcome is ScrapeOutcome.TARGET_REACHED
    assert [p.post_id for p in result] == ["1", "2", "3", "4", "5", "6"]
    assert page.scrolls == 2


async def test_budget_exhaustion_returns_partial_results(resolver):
    page = FakeFeedPage([batch(1, 2), batch(3)])
    budget = ScrapeBudget(target_count=10, timeout=20, scroll_delay=0, growth_timeout=1)

    result = await Paginator(resolver, clock=StepClock()).paginate(page, budget)

    assert result.outcome is ScrapeOutcome.BUDGET_EXHAUSTED
    assert result.budget_exhausted
    assert [p.post_id for p in result] == ["1", "2", "3"]


async def test_promoted_items_are_skipped_and_counted(resolver):
    items = [post_element("1", promoted=True), post_element("2"), post_element("3")]
    page = FakeFeedPage([items])
    budget = ScrapeBudget(target_count=2, timeout=30, scroll_delay=0, growth_timeout=1)

    result = await Paginator(resolver).paginate(page, budget)

    assert [p.post_id for p in result] == ["2", "3"]
    assert result.skipped == 1


async def test_excluded_identities_are_never_emitted(resolver):
    page = FakeFeedPage([batch(100, 101, 102)])
    budget = ScrapeBudget(target_count=2, timeout=30, scroll_delay=0, growth_timeout=1)

    result = await Paginator(resolver).paginate(page, budget, kind=RecordKind.COMMENT,
                                                exclude=["100"])

    assert [c.comment_id for c in result] == ["101", "102"]


async def test_each_run_starts_with_a_fresh_seen_set(resolver):
    page = FakeFeedPage([batch(1, 2)])
    budget = ScrapeBudget(target_count=2, timeout=30, scroll_delay=0, growth_timeout=1)
    paginator = Paginator(resolver)

    first = await paginator.paginate(page, budget)
    second = await paginator.paginate(page, budget)

    assert [p.post_id for p in first] == [p.post_id for p in second] == ["1", "2"]


class SlowExtractor(ContentExtractor):
    """Each extraction costs one second on ``clock``; promoted checks are counted."""

    def __init__(self, resolver, clock):
        super().__init__(resolver)
        self.clock = clock
        self.promoted_checks = 0

    async def is_promoted(self, element):
        self.promoted_checks += 1
        return await super().is_promoted(element)

    async def extract_post(self, element, check_promoted=True):
        self.clock.now += 1
        return await super().extract_post(element, check_promoted)


async def test_deadline_is_honoured_between_items_of_one_pass(resolver):
    clock = StepClock(0)
    page = FakeFeedPage([batch(*range(1, 21))])
    budget = ScrapeBudget(target_count=100, timeout=3, scroll_delay=0, growth_timeout=1)

    result = await Paginator(resolver, SlowExtractor(resolver, clock), clock=clock).paginate(page, budget)

    assert result.outcome is ScrapeOutcome.BUDGET_EXHAUSTED
    assert result.elapsed <= 3
    assert [p.post_id for p in result] == ["1", "2", "3"]
    assert page.scrolls == 0


async def test_promoted_marker_is_checked_once_per_item(resolver):
    extractor = SlowExtractor(resolver, StepClock(0))
    items = [post_element("1", promoted=True), post_element("2"), post_element("3")]
    page = FakeFeedPage([items])
    budget = ScrapeBudget(target_count=2, timeout=30, scroll_delay=0, growth_timeout=1)

    result = await Paginator(resolver, extractor).paginate(page, budget)

    assert [p.post_id for p in result] == ["2", "3"]
    assert extractor.promoted_checks == 3
