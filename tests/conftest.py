"""In-memory stand-ins for Playwright pages, frames and element handles."""

from typing import Dict, List, Optional

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from x_agent.core.constants import DEFAULT_LOCATORS
from x_agent.scrapers.page_utils import SCROLL_HEIGHT_JS, SCROLL_TO_BOTTOM_JS
from x_agent.utils.locator import LocatorResolver


def sel(role: str, index: int = 0) -> str:
    """The default selector for ``role``."""
    return DEFAULT_LOCATORS[role][index]


class FakeElement:
    def __init__(self, text: str = "", attrs: Optional[Dict[str, str]] = None,
                 children: Optional[Dict[str, List["FakeElement"]]] = None,
                 visible: bool = True, on_click=None, on_press=None):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.visible = visible
        self.on_click = on_click
        self.on_press = on_press
        self.value = ""
        self.clicks = 0
        self.pressed: List[str] = []

    def add(self, selector: str, *elements: "FakeElement") -> "FakeElement":
        self.children.setdefault(selector, []).extend(elements)
        return self

    async def query_selector_all(self, selector):
        return list(self.children.get(selector, []))

    async def query_selector(self, selector):
        matches = self.children.get(selector, [])
        return matches[0] if matches else None

    async def is_visible(self):
        return self.visible

    async def text_content(self):
        return self.text

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def click(self, **kwargs):
        self.clicks += 1
        if self.on_click:
            self.on_click()

    async def fill(self, value):
        self.value = value

    async def type(self, text, delay=0):
        self.value += text

    async def press(self, key):
        self.pressed.append(key)
        if self.on_press:
            self.on_press(key)


class BrokenElement(FakeElement):
    """Every lookup on this element fails, like a node detached mid-read."""

    async def get_attribute(self, name):
        raise RuntimeError("element is detached")

    async def text_content(self):
        raise RuntimeError("element is detached")


def post_element(post_id: str, username: str = "alice", text: str = "hello",
                 likes: str = "", reshares: str = "", replies: str = "", views: str = "",
                 timestamp: Optional[str] = "2024-05-01T12:00:00.000Z",
                 promoted: bool = False, photos=(), extra_links=()) -> FakeElement:
    """A rendered feed item using the default locator selectors."""
    item = FakeElement()
    item.add(sel("item_link"), FakeElement(attrs={"href": f"/{username}/status/{post_id}"}))
    status_links = [FakeElement(attrs={"href": href}) for href in extra_links]
    status_links.append(FakeElement(attrs={"href": f"/{username}/status/{post_id}"}))
    item.add(sel("item_status_links"), *status_links)
    item.add(sel("item_author_link"), FakeElement(attrs={"href": f"/{username}"}))
    item.add(sel("item_display_name"), FakeElement(text=username.title()))
    item.add(sel("item_text"), FakeElement(text=text))
    if timestamp:
        item.add(sel("item_time"), FakeElement(attrs={"datetime": timestamp}))
    for src in photos:
        item.add(sel("item_photo"), FakeElement(attrs={"src": src}))
    for role, value in (("metric_likes", likes), ("metric_reshares", reshares),
                        ("metric_replies", replies), ("metric_impressions", views)):
        if value:
            item.add(sel(role), FakeElement(text=value))
    if promoted:
        item.add(sel("ad_marker"), FakeElement())
    return item


class FakeFeedPage:
    """
    An infinite-scroll feed: each scroll to the bottom reveals the next batch
    and grows the document. With no batches left the height stays put.
    """

    def __init__(self, batches: List[List[FakeElement]], url: str = "https://x.com/home"):
        self.batches = batches
        self.revealed = 1
        self.url = url
        self.scrolls = 0
        self.feed_selector = sel("feed_item")
        self.extra: Dict[str, List[FakeElement]] = {}
        self.visited: List[str] = []

    @property
    def height(self) -> int:
        return self.revealed * 1000

    def replace_items(self, items: List[FakeElement]) -> None:
        self.batches = [items]
        self.revealed = 1

    async def query_selector_all(self, selector):
        if selector == self.feed_selector:
            return [item for batch in self.batches[:self.revealed] for item in batch]
        return list(self.extra.get(selector, []))

    async def goto(self, url, **kwargs):
        self.visited.append(url)
        self.url = url

    async def reload(self, **kwargs):
        self.visited.append(self.url)

    async def wait_for_load_state(self, state="load", **kwargs):
        return None

    async def evaluate(self, expression, arg=None):
        if expression == SCROLL_HEIGHT_JS:
            return self.height
        if expression == SCROLL_TO_BOTTOM_JS:
            self.scrolls += 1
            if self.revealed < len(self.batches):
                self.revealed += 1
            return None
        raise AssertionError(f"unexpected script: {expression}")

    async def wait_for_function(self, expression, arg=None, timeout=None):
        if self.height > arg:
            return True
        raise PlaywrightTimeoutError("Timeout exceeded")


class FakeFrame:
    def __init__(self, lookup, child_frames=None):
        self._lookup = lookup
        self.child_frames = child_frames or []

    async def query_selector_all(self, selector):
        return self._lookup(selector)


class FakeLoginPage:
    """
    A login flow as a set of named screens, each mapping selectors to the
    elements it shows. Element callbacks move the page between screens.
    """

    def __init__(self, screen: str = "identifier", url: str = "https://x.com/i/flow/login"):
        self.screen = screen
        self.url = url
        self.screens: Dict[str, Dict[str, List[FakeElement]]] = {}
        self.child_frames: List[FakeFrame] = []

    def add(self, screen: str, selector: str, element: FakeElement) -> FakeElement:
        self.screens.setdefault(screen, {}).setdefault(selector, []).append(element)
        return element

    def show(self, screen: str):
        def switch():
            self.screen = screen
        return switch

    def land_home(self):
        self.url = "https://x.com/home"

    async def query_selector_all(self, selector):
        return list(self.screens.get(self.screen, {}).get(selector, []))

    @property
    def main_frame(self):
        def lookup(selector):
            return list(self.screens.get(self.screen, {}).get(selector, []))
        return FakeFrame(lookup, self.child_frames)


class StepClock:
    """Deterministic monotonic clock: every reading advances by ``step``."""

    def __init__(self, step: float = 1.0):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


@pytest.fixture
def resolver():
    return LocatorResolver(DEFAULT_LOCATORS, poll_interval=0.01)


@pytest.fixture
def logs():
    lines = []
    return lines
