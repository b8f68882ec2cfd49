"""Shared utility modules for X agents."""

from .browser import BrowserManager
from .locator import Found, LocatorChain, LocatorResolver, NotFound
from .logger import AgentLogger, null_log
from .parsing import parse_count
from .anti_detection import (
    human_delay, human_mouse_move, human_like_click, human_like_type,
    RateLimiter
)
