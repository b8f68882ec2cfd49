"""
Pagination Engine
=================
Collects a bounded, deduplicated list of records from an infinite-scroll
feed. Each cycle enumerates the rendered items, extracts the ones not seen
yet, and scrolls for more until the target count is reached or the time
budget runs out.
"""

import time
from typing import Callable, Iterable, List, Optional

from ..core.models import RecordKind, ScrapeBudget, ScrapeOutcome, ScrapeResult
from ..utils.locator import LocatorResolver
from ..utils.logger import null_log
from .extractor import ContentExtractor
from .page_utils import scroll_and_wait


class Paginator:
    def __init__(self, resolver: LocatorResolver, extractor: Optional[ContentExtractor] = None,
                 log_func=None, clock: Callable[[], float] = time.monotonic):
        self.resolver = resolver
        self.log = log_func or null_log
        self.extractor = extractor or ContentExtractor(resolver, log_func=self.log)
        self.clock = clock

    def _extract_func(self, kind: RecordKind):
        if kind is RecordKind.POST:
            return self.extractor.extract_post
        if kind is RecordKind.COMMENT:
            return self.extractor.extract_comment
        raise ValueError(f"Cannot paginate records of kind {kind.value}")

    async def paginate(self, page, budget: ScrapeBudget,
                       kind: RecordKind = RecordKind.POST,
                       exclude: Iterable[str] = ()) -> ScrapeResult:
        """
        Scrape up to ``budget.target_count`` distinct records from ``page``.

        Records come back in first-seen order. Identities in ``exclude`` are
        treated as already seen and never emitted.
        """
        extract = self._extract_func(kind)
        seen = set(exclude)
        records: List = []
        skipped = 0

        start = self.clock()
        deadline = start + budget.timeout
        self.log(f"Scraping up to {budget.target_count} {kind.value}s "
                 f"(budget {budget.timeout:.0f}s)")

        while self.clock() < deadline:
            for element in await self.resolver.resolve_all(page, "feed_item"):
                if self.clock() >= deadline:
                    break
                if await self.extractor.is_promoted(element):
                    skipped += 1
                    continue
                try:
                    record = await extract(element, check_promoted=False)
                except Exception as e:
                    self.log(f"  Extraction skipped: {e}")
                    record = None
                if record is None:
                    skipped += 1
                    continue
                if record.identity in seen:
                    continue

                seen.add(record.identity)
                records.append(record)
                if len(records) >= budget.target_count:
                    elapsed = self.clock() - start
                    self.log(f"Collected {len(records)} {kind.value}s in {elapsed:.1f}s")
                    return ScrapeResult(tuple(records), ScrapeOutcome.TARGET_REACHED,
                                        skipped=skipped, elapsed=elapsed)

            remaining = deadline - self.clock()
            if remaining <= 0:
                break
            grew = await scroll_and_wait(
                page,
                min(budget.scroll_delay, remaining),
                min(budget.growth_timeout, max(deadline - self.clock(), 0)),
            )
            if not grew:
                self.log(f"  No new content after scroll ({len(records)} collected)")

        elapsed = self.clock() - start
        self.log(f"Budget exhausted: {len(records)}/{budget.target_count} "
                 f"{kind.value}s in {elapsed:.1f}s")
        return ScrapeResult(tuple(records), ScrapeOutcome.BUDGET_EXHAUSTED,
                            skipped=skipped, elapsed=elapsed)
