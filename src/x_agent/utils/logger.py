"""
Logging
=======
Timestamped agent log lines to stderr and to logs/<name>.log.
Components accept any ``log_func(msg)`` callable; AgentLogger is the
concrete one used by agents and the CLI.
"""

import os
import sys
from datetime import datetime

from ..core.constants import LOGS_DIR


class AgentLogger:
    """Callable logger: ``log("message")``."""

    def __init__(self, name: str, logs_dir: str = LOGS_DIR, to_file: bool = True):
        self.name = name
        self.log_file = os.path.join(logs_dir, f"{name.lower()}.log") if to_file else None
        if self.log_file:
            os.makedirs(logs_dir, exist_ok=True)

    def __call__(self, msg: str) -> None:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_line = f"[{timestamp}] [{self.name}] {msg}"
        # stdout is reserved for command output
        print(log_line, file=sys.stderr, flush=True)

        if self.log_file:
            try:
                with open(self.log_file, "a", encoding="utf-8") as f:
                    f.write(log_line + "\n")
            except OSError as e:
                print(f"[{self.name}] Could not write log file: {e}", file=sys.stderr)


def null_log(msg: str) -> None:
    """Default log_func for library use: discard."""
