"""Process-local TTL cache for read-mostly listings.

Entries carry their own expiry. Keys are namespaced strings (``"templates:list"``)
so a whole family can be dropped with ``invalidate_prefix`` after a write.
"""

import time
from typing import Any

DEFAULT_TTL = 60

TEMPLATE_PREFIX = "templates:"
TEMPLATE_LIST_KEY = TEMPLATE_PREFIX + "list"

# key -> (expires_at monotonic seconds, value)
_entries: dict[str, tuple[float, Any]] = {}


def get(key: str) -> Any | None:
    entry = _entries.get(key)
    if entry is None:
        return None
    expires_at, value = entry
    if time.monotonic() >= expires_at:
        del _entries[key]
        return None
    return value


def put(key: str, value: Any, ttl: float = DEFAULT_TTL) -> None:
    _entries[key] = (time.monotonic() + ttl, value)


def invalidate_prefix(prefix: str) -> int:
    """Drop every key starting with ``prefix``; return how many went."""
    doomed = [k for k in _entries if k.startswith(prefix)]
    for key in doomed:
        del _entries[key]
    return len(doomed)


def clear() -> None:
    _entries.clear()
