"""
Login State Machine
===================
Drives the branching login flow:

    EnteringIdentifier -> [SecondaryVerification] -> [SecurityChallenge]
        -> EnteringPassword -> Submitting -> Authenticated | Failed

The optional states are entered only when their marker is detected on the
page after the previous step; otherwise the machine moves straight on.
"""

import asyncio
import time
from collections import deque
from enum import Enum
from typing import List, Optional

from .errors import AuthenticationFailed, LoginFailureReason, LoginFlowError
from ..utils.anti_detection import human_delay, human_like_click, human_like_type
from ..utils.locator import Found, LocatorResolver
from ..utils.logger import null_log


class LoginState(str, Enum):
    ENTERING_IDENTIFIER = "EnteringIdentifier"
    SECONDARY_VERIFICATION = "SecondaryVerification"
    SECURITY_CHALLENGE = "SecurityChallenge"
    ENTERING_PASSWORD = "EnteringPassword"
    SUBMITTING = "Submitting"
    AUTHENTICATED = "Authenticated"
    FAILED = "Failed"


# Marker role -> state it triggers, in detection priority order
_BRANCH_MARKERS = [
    ("verification_field", LoginState.SECONDARY_VERIFICATION),
    ("challenge_marker", LoginState.SECURITY_CHALLENGE),
    ("password_field", LoginState.ENTERING_PASSWORD),
]


class LoginStateMachine:
    """
    One login attempt against an already-open page.

    ``visited`` records the working states in the order they ran;
    ``state`` holds the terminal state once ``run()`` returns or raises.
    """

    def __init__(self, page, resolver: LocatorResolver, username: str, password: str,
                 secondary_id: Optional[str] = None, home_marker: str = "/home",
                 step_timeout: float = 10.0, submit_timeout: float = 20.0,
                 humanize: bool = True, poll_interval: float = 0.25, log_func=None):
        self.page = page
        self.resolver = resolver
        self.username = username
        self.password = password
        self.secondary_id = secondary_id
        self.home_marker = home_marker
        self.step_timeout = step_timeout
        self.submit_timeout = submit_timeout
        self.humanize = humanize
        self.poll_interval = poll_interval
        self.log = log_func or null_log

        self.state: Optional[LoginState] = None
        self.visited: List[LoginState] = []
        self.failure: Optional[Exception] = None
        self._detected: Optional[Found] = None
        self._password_field = None

    # ==================== Driver ====================

    async def run(self) -> LoginState:
        """Run the flow to completion. Raises AuthenticationFailed or LoginFlowError."""
        handlers = {
            LoginState.ENTERING_IDENTIFIER: self._enter_identifier,
            LoginState.SECONDARY_VERIFICATION: self._secondary_verification,
            LoginState.SECURITY_CHALLENGE: self._security_challenge,
            LoginState.ENTERING_PASSWORD: self._enter_password,
            LoginState.SUBMITTING: self._submit,
        }

        next_state = LoginState.ENTERING_IDENTIFIER
        try:
            while next_state is not LoginState.AUTHENTICATED:
                self.state = next_state
                self.visited.append(next_state)
                self.log(f"Login: {next_state.value}")
                next_state = await handlers[next_state]()
        except (LoginFlowError, AuthenticationFailed) as e:
            self.failure = e
            self.state = LoginState.FAILED
            self.log(f"Login failed in {self.visited[-1].value}: {e}")
            raise

        self.state = LoginState.AUTHENTICATED
        self.log("Login: Authenticated")
        return self.state

    def _fail(self, reason: LoginFailureReason, detail: Optional[str] = None) -> LoginFlowError:
        return LoginFlowError(reason, state=self.state.value if self.state else None, detail=detail)

    # ==================== Interaction ====================

    async def _type(self, element, text: str) -> None:
        if self.humanize:
            await human_like_type(element, text)
        else:
            await element.fill(text)

    async def _click(self, element) -> None:
        if self.humanize:
            await human_like_click(self.page, element)
        else:
            await element.click()

    async def _advance(self, field) -> None:
        """Activate the advance control, or press Enter in the field."""
        button = await self.resolver.resolve(self.page, "advance_button")
        if button:
            await self._click(button.handle)
        else:
            self.log("  No advance control found, pressing Enter")
            await field.press("Enter")

    async def _detect_next(self) -> LoginState:
        """
        Wait for the first marker of a state not yet visited.

        No marker within the step timeout falls through to EnteringPassword,
        which has its own fallbacks.
        """
        candidates = [(role, state) for role, state in _BRANCH_MARKERS
                      if state not in self.visited]
        roles = [role for role, _ in candidates]
        result = await self.resolver.first_present(self.page, roles, self.step_timeout)
        if not result:
            self.log("  No follow-up screen detected")
            self._detected = None
            return LoginState.ENTERING_PASSWORD

        self._detected = result
        return dict(candidates)[result.role]

    # ==================== States ====================

    async def _enter_identifier(self) -> LoginState:
        field = await self.resolver.wait_for(self.page, "identifier_field", self.step_timeout)
        if not field:
            raise self._fail(LoginFailureReason.IDENTIFIER_FIELD_MISSING,
                             f"tried {list(field.tried)}")

        await self._type(field.handle, self.username)
        await self._advance(field.handle)
        return await self._detect_next()

    async def _secondary_verification(self) -> LoginState:
        if not self.secondary_id:
            raise self._fail(LoginFailureReason.VERIFICATION_REQUIRED_NO_FALLBACK,
                             "verification input shown but no secondary identifier configured")

        field = self._detected
        if not field or field.role != "verification_field":
            field = await self.resolver.wait_for(self.page, "verification_field", self.step_timeout)
        if not field:
            # Screen changed under us; let detection decide what is next
            return await self._detect_next()

        self.log("  Entering secondary identifier")
        await self._type(field.handle, self.secondary_id)
        await self._advance(field.handle)
        return await self._detect_next()

    async def _security_challenge(self) -> LoginState:
        for control in await self.resolver.candidates(self.page, "challenge_continue"):
            self.log(f"  Trying challenge control: {control.expression}")
            try:
                await self._click(control.handle)
            except Exception as e:
                self.log(f"  Challenge control failed: {e}")
                continue

            if await self._wait_until_gone("challenge_marker", min(self.step_timeout, 3.0)):
                return await self._detect_next()

        raise self._fail(LoginFailureReason.CHALLENGE_UNRESOLVABLE,
                         "challenge marker still present after all continue controls")

    async def _enter_password(self) -> LoginState:
        field = self._detected if self._detected and self._detected.role == "password_field" else None
        if not field:
            field = await self.resolver.wait_for(self.page, "password_field", self.step_timeout)

        handle = field.handle if field else await self._scan_password_inputs()
        if handle is None:
            raise self._fail(LoginFailureReason.PASSWORD_FIELD_MISSING,
                             "no password input in locator chain or document scan")

        # Clear any prefilled value first
        await handle.fill("")
        await self._type(handle, self.password)
        self._password_field = handle
        return LoginState.SUBMITTING

    async def _scan_password_inputs(self):
        """Breadth-first scan of every frame for a visible password input."""
        self.log("  Password chain exhausted, scanning document")
        queue = deque([self.page.main_frame])
        while queue:
            frame = queue.popleft()
            try:
                inputs = await frame.query_selector_all('input[type="password"]')
            except Exception as e:
                self.log(f"  Frame scan failed: {e}")
                inputs = []
            for handle in inputs:
                try:
                    if await handle.is_visible():
                        return handle
                except Exception:
                    continue
            queue.extend(frame.child_frames)
        return None

    async def _submit(self) -> LoginState:
        button = await self.resolver.resolve(self.page, "login_button")
        if button:
            await self._click(button.handle)
        else:
            self.log("  No login control found, pressing Enter")
            await self._password_field.press("Enter")

        deadline = time.monotonic() + self.submit_timeout
        while True:
            if self.home_marker in self.page.url:
                return LoginState.AUTHENTICATED

            wrong = await self.resolver.resolve(self.page, "wrong_credentials_marker")
            if wrong:
                raise AuthenticationFailed(f"wrong credentials ({await self._text(wrong.handle)})")

            alert = await self.resolver.resolve(self.page, "alert_marker")
            if alert:
                raise AuthenticationFailed(f"alert on submit ({await self._text(alert.handle)})")

            if time.monotonic() >= deadline:
                raise self._fail(LoginFailureReason.TIMEOUT,
                                 f"no outcome within {self.submit_timeout:.0f}s")
            await asyncio.sleep(self.poll_interval)

    # ==================== Helpers ====================

    async def _wait_until_gone(self, role: str, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        while await self.resolver.exists(self.page, role):
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self.poll_interval)
        if self.humanize:
            await human_delay(0.5, 1.5)
        return True

    @staticmethod
    async def _text(handle) -> str:
        try:
            return ((await handle.text_content()) or "").strip()[:120]
        except Exception:
            return ""
