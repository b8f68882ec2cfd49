"""
X Agent - browser automation and structured scraping for X (Twitter).

This package provides:
- SessionManager: authenticated browser sessions with a persisted auth state
- LoginStateMachine: the branching, detect-then-act login flow
- Paginator / FeedMonitor: bounded, deduplicated feed scraping and polling
- Feed operations for timelines, search, profiles and comments
"""

__version__ = "1.0.0"

from .core.config import ConfigManager, Settings
from .core.errors import AuthenticationFailed, LoginFailureReason, LoginFlowError, XAgentError
from .core.models import Comment, Post, Profile, ScrapeBudget, ScrapeOutcome, ScrapeResult
from .core.session import Session, SessionManager
