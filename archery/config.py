import os
from typing import Optional


def env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """Integer environment variable; ``default`` when unset or not an int."""
    val = os.environ.get(name)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def env_list(name: str, default: str = "") -> list[str]:
    """Comma-separated environment variable with blanks dropped."""
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]
