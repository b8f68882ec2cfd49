"""Login agent: runs the login flow and refreshes the saved auth state."""

from typing import Any, Dict

from .base_agent import BaseAgent


class LoginAgent(BaseAgent):
    force_login = True

    def get_agent_name(self) -> str:
        return "LoginAgent"

    async def run(self) -> Dict[str, Any]:
        self.log(f"Logged in as {self.settings.username}")
        return {
            "authenticated": self.session.authenticated,
            "auth_state_path": self.session.auth_state_path,
            "url": self.page.url,
        }
