"""
Locator Resolution
==================
Every UI element is addressed by a semantic role ("password_field",
"feed_item", ...) backed by an ordered chain of Playwright selectors.
The resolver walks the chain and returns the first present, visible match.

A missing element is a result (NotFound), not an exception: callers decide
whether absence is fatal or just means an optional step was skipped.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from .logger import null_log


@dataclass(frozen=True)
class LocatorChain:
    role: str
    expressions: Tuple[str, ...]

    def format(self, **values) -> Tuple[str, ...]:
        """Fill {placeholders}; expressions without any are returned as is."""
        if not values:
            return self.expressions
        return tuple(expr.format(**values) if "{" in expr else expr
                     for expr in self.expressions)


@dataclass(frozen=True)
class Found:
    role: str
    expression: str
    handle: Any

    found = True

    def __bool__(self):
        return True


@dataclass(frozen=True)
class NotFound:
    role: str
    tried: Tuple[str, ...] = ()

    found = False
    handle = None

    def __bool__(self):
        return False


Resolution = Union[Found, NotFound]


def build_chains(locators: Mapping[str, Iterable[str]]) -> Dict[str, LocatorChain]:
    return {role: LocatorChain(role, tuple(exprs)) for role, exprs in locators.items()}


class LocatorResolver:
    """
    Resolves semantic roles against a page, frame or element handle.

    Any object with ``query_selector_all`` works as a root, so the same
    chains serve whole-page lookups and lookups scoped to one feed item.
    """

    def __init__(self, locators: Mapping[str, Iterable[str]], log_func=None,
                 poll_interval: float = 0.25):
        self.chains = build_chains(locators)
        self.log = log_func or null_log
        self.poll_interval = poll_interval

    def chain(self, role: str) -> LocatorChain:
        try:
            return self.chains[role]
        except KeyError:
            raise KeyError(f"No locator chain configured for role '{role}'") from None

    async def _query(self, root, expression: str) -> List[Any]:
        try:
            return await root.query_selector_all(expression)
        except Exception as e:
            # Bad selector or detached root: a miss for this expression only
            self.log(f"  [locator] '{expression}' failed: {e}")
            return []

    @staticmethod
    async def _is_visible(handle) -> bool:
        try:
            return await handle.is_visible()
        except Exception:
            return False

    async def resolve(self, root, role: str, **fmt) -> Resolution:
        """First visible match along the chain, or NotFound."""
        expressions = self.chain(role).format(**fmt)
        for expression in expressions:
            for handle in await self._query(root, expression):
                if await self._is_visible(handle):
                    return Found(role, expression, handle)
        return NotFound(role, expressions)

    async def candidates(self, root, role: str, **fmt) -> List[Found]:
        """One visible match per expression, in chain order."""
        matches = []
        for expression in self.chain(role).format(**fmt):
            for handle in await self._query(root, expression):
                if await self._is_visible(handle):
                    matches.append(Found(role, expression, handle))
                    break
        return matches

    async def resolve_all(self, root, role: str, **fmt) -> List[Any]:
        """All matches of the first expression that yields any."""
        for expression in self.chain(role).format(**fmt):
            handles = await self._query(root, expression)
            if handles:
                return handles
        return []

    async def exists(self, root, role: str, **fmt) -> bool:
        return bool(await self.resolve(root, role, **fmt))

    async def wait_for(self, root, role: str, timeout: float, **fmt) -> Resolution:
        """Poll ``resolve`` until the role appears or ``timeout`` seconds pass."""
        return await self.first_present(root, [role], timeout, **fmt)

    async def first_present(self, root, roles: List[str], timeout: float, **fmt) -> Resolution:
        """
        Poll several roles together and return whichever appears first.

        Roles are checked in the given order on each poll, so earlier roles
        win ties. Returns NotFound for the first role on timeout.
        """
        deadline = time.monotonic() + timeout
        while True:
            for role in roles:
                result = await self.resolve(root, role, **fmt)
                if result:
                    return result
            if time.monotonic() >= deadline:
                tried = tuple(e for role in roles for e in self.chain(role).format(**fmt))
                return NotFound(roles[0], tried)
            await asyncio.sleep(self.poll_interval)
