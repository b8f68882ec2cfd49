"""
Anti-Detection Utilities for X Agents
=====================================
Randomized pauses and input pacing so a scripted session reads like a
person at the keyboard: jittered delays, pointer travel before clicks,
per-character typing, and spacing between consecutive page visits.

Usage:
    from x_agent.utils.anti_detection import human_delay, human_like_click
"""

import asyncio
import random
from typing import Optional, Tuple


async def human_delay(min_seconds=1.5, max_seconds=4.0):
    """Sleep for a random duration between the two bounds."""
    await asyncio.sleep(random.uniform(min_seconds, max_seconds))


async def human_mouse_move(page, target_element=None):
    """
    Move the pointer the way a hand would.

    Args:
        page: Playwright page object
        target_element: Optional element to drift onto; without one the
            pointer wanders somewhere inside the viewport
    """
    if target_element is not None:
        box = await target_element.bounding_box()
        if not box:
            return
        x = box["x"] + box["width"] * random.uniform(0.25, 0.75)
        y = box["y"] + box["height"] * random.uniform(0.25, 0.75)
    else:
        viewport = page.viewport_size
        if not viewport:
            return
        margin = 80
        x = random.uniform(margin, max(margin + 1, viewport["width"] - margin))
        y = random.uniform(margin, max(margin + 1, viewport["height"] - margin))

    await page.mouse.move(x, y, steps=random.randint(4, 12))
    await asyncio.sleep(random.uniform(0.05, 0.25))


async def human_like_click(page, element, pre_delay=True, post_delay=True):
    """
    Aim at an element, then click it.

    Args:
        page: Playwright page object
        element: Element handle to click
        pre_delay: Pause before moving the pointer
        post_delay: Pause after the click lands
    """
    if pre_delay:
        await human_delay(0.3, 1.0)

    await human_mouse_move(page, element)
    await element.click()

    if post_delay:
        await human_delay(0.5, 1.5)


async def human_like_type(element, text, clear_first=True):
    """
    Type ``text`` one character at a time with uneven keystroke timing.

    Args:
        element: Input element handle
        text: Text to type
        clear_first: Empty the field before typing (login forms may be prefilled)
    """
    if clear_first:
        await element.fill("")
        await asyncio.sleep(random.uniform(0.2, 0.5))

    for char in text:
        await element.type(char, delay=random.randint(50, 150))
        # now and then stop to "think"
        if random.random() < 0.05:
            await asyncio.sleep(random.uniform(0.3, 0.8))

    await human_delay(0.3, 0.8)


class RateLimiter:
    """
    Spaces out consecutive page visits (profiles, searches).

    The first call to ``wait`` returns immediately; each later call sleeps
    a random ``delay`` and every ``long_pause_every`` visits adds a longer
    break.
    """

    def __init__(self, delay: Tuple[float, float] = (2, 4), long_pause_every: int = 10,
                 long_pause: Tuple[float, float] = (10, 20)):
        if long_pause_every < 1:
            raise ValueError("long_pause_every must be at least 1")
        self.delay = delay
        self.long_pause_every = long_pause_every
        self.long_pause = long_pause
        self.visits = 0

    async def wait(self, log_func=None) -> Optional[float]:
        """Pause before the next visit. Returns the seconds slept, None for the first visit."""
        self.visits += 1
        if self.visits == 1:
            return None

        slept = random.uniform(*self.delay)
        if log_func:
            log_func(f"  [Pause {slept:.1f}s...]")
        await asyncio.sleep(slept)

        if (self.visits - 1) % self.long_pause_every == 0:
            extra = random.uniform(*self.long_pause)
            if log_func:
                log_func(f"  [Extended break {extra:.0f}s...]")
            await asyncio.sleep(extra)
            slept += extra
        return slept
