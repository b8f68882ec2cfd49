"""
Scrape Agent
============
Runs one feed operation against an authenticated session and outputs
its result. The CLI builds one per command:

    agent = ScrapeAgent("TimelineAgent", lambda ctx: scrape_timeline(ctx, kind))
    await agent.execute()
"""

from typing import Any, Awaitable, Callable

from ..scrapers.context import ScrapeContext
from .base_agent import BaseAgent

Operation = Callable[[ScrapeContext], Awaitable[Any]]


class ScrapeAgent(BaseAgent):
    def __init__(self, name: str, operation: Operation, **kwargs):
        self.name = name
        self.operation = operation
        super().__init__(**kwargs)

    def get_agent_name(self) -> str:
        return self.name

    async def run(self) -> Any:
        result = await self.operation(self.ctx)
        if result is None:
            self.log("Nothing found")
        elif hasattr(result, "__len__"):
            self.log(f"Collected {len(result)} item(s)")
        return result
