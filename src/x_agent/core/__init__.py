"""Core infrastructure: configuration, records, errors, session and login."""

from .config import ConfigManager, Settings, parse_proxy
from .errors import AuthenticationFailed, LoginFailureReason, LoginFlowError, XAgentError
from .login import LoginState, LoginStateMachine
from .models import (
    Author, Comment, Media, Metrics, Post, Profile, RecordKind,
    ScrapeBudget, ScrapeOutcome, ScrapeResult, engagement_rate,
)
from .session import Session, SessionManager
