"""
Session Manager
===============
Owns the browser-session lifecycle:

- acquire(): restore the saved AuthState, open the home feed, and run the
  login state machine if the restored session turns out to be logged out.
- release(): tear everything down; also runs when acquire() itself fails.

The AuthState file is the only durable state written. It is replaced
atomically (temp file + rename) and only after a successful login.
"""

import asyncio
import json
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from .config import ConfigManager, Settings
from .errors import AuthenticationFailed
from .login import LoginStateMachine
from ..utils.browser import BrowserManager
from ..utils.files import atomic_write_json
from ..utils.locator import LocatorResolver
from ..utils.logger import null_log


@dataclass
class Session:
    """Live browser handles for one logical flow of control."""
    browser_manager: BrowserManager
    page: Any
    context: Any
    auth_state_path: str
    login_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    authenticated: bool = False
    closed: bool = False


def load_auth_state(path: str, log_func=None) -> Optional[Dict[str, Any]]:
    """
    Read a saved storage state. Missing, corrupt or incompatible files
    all mean "no session".
    """
    log = log_func or null_log
    if not path or not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            state = json.load(f)
    except (OSError, ValueError) as e:
        log(f"Ignoring unreadable auth state {path}: {e}")
        return None

    if not isinstance(state, dict) or not isinstance(state.get("cookies"), list):
        log(f"Ignoring incompatible auth state {path}")
        return None
    return state


def save_auth_state(path: str, state: Dict[str, Any]) -> None:
    """Overwrite the auth state file atomically."""
    atomic_write_json(path, state)


def is_login_location(url: str, markers) -> bool:
    return any(marker in url for marker in markers)


class SessionManager:
    """
    Creates authenticated sessions.

    Usage:
        manager = SessionManager(settings, config)
        async with manager.open() as session:
            ...
    """

    def __init__(self, settings: Settings, config: Optional[ConfigManager] = None,
                 log_func=None):
        self.settings = settings
        self.config = config or ConfigManager(settings.config_path)
        self.log = log_func or null_log
        self.resolver = LocatorResolver(self.config.locators(), log_func=self.log)

    def _browser_manager(self) -> BrowserManager:
        return BrowserManager(
            headless=self.settings.headless,
            slow_mo=self.settings.slow_mo,
            proxy=self.settings.proxy,
            humanize=self.settings.humanize,
            log_func=self.log,
        )

    async def acquire(self, force_login: bool = False) -> Session:
        """
        Return an authenticated Session.

        Raises AuthenticationFailed or LoginFlowError; browser resources are
        released before the error propagates.
        """
        path = self.settings.auth_state_path
        storage_state = None if force_login else load_auth_state(path, self.log)

        manager = self._browser_manager()
        session = None
        try:
            await manager.launch()
            try:
                context, page = await manager.new_context(storage_state)
            except Exception as e:
                if storage_state is None:
                    raise
                self.log(f"Saved auth state rejected by the browser, starting fresh: {e}")
                context, page = await manager.new_context(None)
            session = Session(manager, page, context, path)

            home_url = self.config.get("urls.home")
            await manager.navigate(home_url, timeout=self.config.get("timeouts.page_load"))

            markers = self.config.get("urls.login_markers")
            if force_login or is_login_location(page.url, markers):
                self.log("Not logged in, performing automatic login...")
                await self.login(session)
            else:
                self.log("Restored session is authenticated")
            session.authenticated = True
            return session

        except BaseException:
            if session:
                await self.release(session)
            else:
                await manager.cleanup()
            raise

    async def login(self, session: Session) -> None:
        """Run the login state machine on ``session`` and persist the result."""
        if not self.settings.has_credentials:
            raise AuthenticationFailed(
                "credentials not configured (set TWITTER_USERNAME and TWITTER_PASSWORD)")

        if session.login_lock.locked():
            raise RuntimeError("A login is already in progress for this session")

        async with session.login_lock:
            page = session.page
            login_markers = self.config.get("urls.login_markers")
            if not is_login_location(page.url, login_markers):
                await session.browser_manager.navigate(
                    self.config.get("urls.login"),
                    timeout=self.config.get("timeouts.page_load"),
                )

            machine = LoginStateMachine(
                page,
                self.resolver,
                self.settings.username,
                self.settings.password,
                secondary_id=self.settings.secondary_id,
                home_marker=urlsplit(self.config.get("urls.home")).path or "/home",
                step_timeout=self.config.get("timeouts.login_step"),
                submit_timeout=self.config.get("timeouts.login_submit"),
                humanize=self.settings.humanize,
                log_func=self.log,
            )
            await machine.run()

            self.log("Saving new auth state...")
            state = await session.context.storage_state()
            save_auth_state(session.auth_state_path, state)

    async def release(self, session: Session) -> None:
        """Close every browser layer of ``session``. Safe to call twice."""
        if session.closed:
            return
        session.closed = True
        await session.browser_manager.cleanup()

    @asynccontextmanager
    async def open(self, force_login: bool = False):
        """acquire() with a guaranteed release() on every exit path."""
        session = await self.acquire(force_login=force_login)
        try:
            yield session
        finally:
            await self.release(session)
