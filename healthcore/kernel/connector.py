"""JSON record access over the key/value store.

Malformed or missing values come back as the caller's default; never raises
on bad data. Store-level failures (e.g. the database is unreachable) are not
swallowed here.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from healthcore.db import KeyValueStore

logger = logging.getLogger(__name__)


def read_json(store: KeyValueStore, key: str, default: Any = None) -> Any:
    raw = store.get(key)
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed JSON under %r", key)
        return default


def read_dict(store: KeyValueStore, key: str) -> dict[str, Any] | None:
    """Parsed object under `key`; None when absent, corrupt, or not a JSON object."""
    value = read_json(store, key)
    return value if isinstance(value, dict) else None


def read_list(store: KeyValueStore, key: str) -> list[Any]:
    """Parsed array under `key`; an empty list when absent, corrupt, or not an array."""
    value = read_json(store, key)
    return value if isinstance(value, list) else []


def write_json(store: KeyValueStore, key: str, value: Any) -> None:
    store.set(key, json.dumps(value, ensure_ascii=False))


def prepend_bounded(store: KeyValueStore, key: str, item: Any, max_items: int) -> list[Any]:
    """Add `item` at the head of the list under `key`, keeping at most `max_items` (oldest dropped)."""
    items = [item, *read_list(store, key)][:max_items]
    write_json(store, key, items)
    return items
