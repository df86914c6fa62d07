"""Common utilities for the log sink."""

import os
from datetime import datetime


def local_now() -> datetime:
    """Get the current timezone-aware local datetime."""
    return datetime.now().astimezone()


def ensure_trailing_separator(path: str) -> str:
    """Return the path with exactly one trailing directory separator appended if missing."""
    if not path.endswith(os.sep):
        return path + os.sep
    return path
