"""Atomic JSON file writes."""

import json
import os
import tempfile
from typing import Any


def atomic_write_json(path: str, data: Any, indent: int = 2) -> None:
    """
    Replace ``path`` with ``data`` serialized as JSON.

    Written to a temp file in the target directory, then renamed into place.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise
