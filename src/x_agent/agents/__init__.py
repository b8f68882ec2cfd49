"""X Agent Classes."""

from .base_agent import BaseAgent
from .login_agent import LoginAgent
from .monitor_agent import MonitorAgent
from .scrape_agent import ScrapeAgent
