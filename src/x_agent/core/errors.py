"""
Error Types
===========
Failures surfaced to callers. Each carries the specific reason (field, state
or timeout) needed to tell whether the upstream UI changed.

Ad/unparsable items and budget exhaustion are not errors: they are reported
through ``ScrapeResult.skipped`` and ``ScrapeOutcome.BUDGET_EXHAUSTED``.
"""

from enum import Enum
from typing import Optional


class XAgentError(Exception):
    """Base class for all x_agent errors."""


class AuthenticationFailed(XAgentError):
    """Credentials were rejected, an alert surfaced on submit, or none were configured."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Authentication failed: {reason}")


class LoginFailureReason(str, Enum):
    IDENTIFIER_FIELD_MISSING = "IdentifierFieldMissing"
    VERIFICATION_REQUIRED_NO_FALLBACK = "VerificationRequiredNoFallback"
    CHALLENGE_UNRESOLVABLE = "ChallengeUnresolvable"
    PASSWORD_FIELD_MISSING = "PasswordFieldMissing"
    TIMEOUT = "Timeout"


class LoginFlowError(XAgentError):
    """The login flow could not be driven to an outcome."""

    def __init__(self, reason: LoginFailureReason, state: Optional[str] = None,
                 detail: Optional[str] = None):
        self.reason = reason
        self.state = state
        self.detail = detail

        msg = f"Login flow error: {reason.value}"
        if state:
            msg += f" (state: {state})"
        if detail:
            msg += f" - {detail}"
        super().__init__(msg)
