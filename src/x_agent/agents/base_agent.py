"""
Base Agent Class
================
Shared lifecycle for every X agent: settings, logging, session
acquisition, result output and debug capture.
"""

import json
import os
import sys
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from ..core.config import ConfigManager, Settings
from ..core.constants import DEBUG_DIR
from ..core.session import Session, SessionManager
from ..scrapers.context import ScrapeContext
from ..utils.files import atomic_write_json
from ..utils.logger import AgentLogger


def to_jsonable(value: Any) -> Any:
    """Records, results and containers of them as plain JSON data."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class BaseAgent(ABC):
    """
    Abstract base class for X automation agents.

    Provides common functionality:
    - Settings from the environment, config file overrides
    - Logging infrastructure
    - Authenticated session lifecycle (acquire, release)
    - JSON result output (stdout or atomic file write)
    - Debug screenshots on failure

    Subclasses must implement:
    - run(): Main agent logic, returns the result to output
    - get_agent_name(): Returns agent identifier
    """

    # Agents that exist to (re)authenticate skip the saved session
    force_login = False

    def __init__(self, config_path: Optional[str] = None, settings: Optional[Settings] = None,
                 headless: Optional[bool] = None, output_path: Optional[str] = None,
                 log_func=None):
        settings = settings or Settings.from_env()
        if config_path:
            settings = replace(settings, config_path=config_path)
        if headless is not None:
            settings = replace(settings, headless=headless)
        self.settings = settings

        self.log = log_func or AgentLogger(self.get_agent_name())
        self.config_manager = ConfigManager(settings.config_path)
        self.session_manager = SessionManager(settings, self.config_manager, log_func=self.log)
        self.output_path = output_path

        self.session: Optional[Session] = None
        self.ctx: Optional[ScrapeContext] = None
        self.page = None

        self.start_time: Optional[datetime] = None
        self.result: Any = None
        self.errors_encountered = 0

    @abstractmethod
    def get_agent_name(self) -> str:
        """Return the agent's identifier (e.g., 'TimelineAgent')."""

    @abstractmethod
    async def run(self) -> Any:
        """Main agent execution logic. Must be implemented by subclasses."""

    # ==================== Session Management ====================

    async def start_session(self) -> None:
        """Acquire an authenticated session."""
        self.session = await self.session_manager.acquire(force_login=self.force_login)
        self.ctx = ScrapeContext.from_session(self.session, self.session_manager)
        self.page = self.session.page
        self.log("Session ready")

    async def stop_session(self) -> None:
        """Release browser resources."""
        if self.session:
            await self.session_manager.release(self.session)
            self.session = None
            self.ctx = None
            self.page = None

    # ==================== Configuration ====================

    def get_config(self, key: str, default: Any = None) -> Any:
        """Get a configuration value with dot notation support."""
        return self.config_manager.get(key, default)

    # ==================== Output ====================

    def write_output(self, data: Any) -> None:
        """Print the result as JSON, or write it atomically to --output."""
        payload = to_jsonable(data)
        if self.output_path:
            atomic_write_json(self.output_path, payload)
            self.log(f"Results written to {self.output_path}")
        else:
            json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
            sys.stdout.write("\n")
            sys.stdout.flush()

    # ==================== Debug Utilities ====================

    async def capture_debug_screenshot(self, context_name: str) -> Optional[str]:
        """Capture a debug screenshot."""
        if not self.page:
            return None

        timestamp = datetime.now().strftime("%H%M%S")
        filename = f"debug_{context_name}_{timestamp}.png"
        path = os.path.join(DEBUG_DIR, "screenshots", filename)

        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            await self.page.screenshot(path=path)
            self.log(f"Debug screenshot saved: {filename}")
            return path
        except Exception as e:
            self.log(f"Screenshot error: {e}")
            return None

    # ==================== Lifecycle Hooks ====================

    async def on_start(self) -> None:
        """Called when agent starts. Override for custom behavior."""
        self.start_time = datetime.now()
        self.log(f"=== {self.get_agent_name()} Starting ===")

    async def on_complete(self) -> None:
        """Called when agent completes. Override for custom behavior."""
        if self.result is not None:
            self.write_output(self.result)
        duration = (datetime.now() - self.start_time).total_seconds() if self.start_time else 0.0
        self.log(f"=== {self.get_agent_name()} Complete ({duration:.1f}s) ===")

    async def on_error(self, error: Exception) -> None:
        """Called when an unhandled error occurs. Override for custom behavior."""
        self.errors_encountered += 1
        self.log(f"ERROR: {error}")
        await self.capture_debug_screenshot("error")

    # ==================== Main Entry Point ====================

    async def execute(self) -> Any:
        """
        Execute the agent with proper lifecycle management.

        This is the recommended way to run an agent:
        ```
        agent = MyAgent()
        result = await agent.execute()
        ```
        """
        try:
            await self.on_start()
            await self.start_session()
            self.result = await self.run()
            await self.on_complete()
            return self.result

        except Exception as e:
            await self.on_error(e)
            raise

        finally:
            await self.stop_session()
