"""Daily rollover: archive yesterday's counters, start today fresh.

Two states per user: counters dated today (current) or dated earlier (stale).
:func:`ensure_daily_reset` is the only transition and is idempotent: the
per-user last-reset date short-circuits every call after the first one of a
local calendar day.

Missing or corrupt records are treated as absent. Each counter domain is
processed in isolation, so one failing domain never blocks the others or the
final last-reset write.
"""

from __future__ import annotations

import logging

from healthcore.config import settings
from healthcore.db import KeyValueStore
from healthcore.kernel import clock, connector
from healthcore.kernel.counter_map import LAST_RESET_SUFFIX, CounterDomain, list_domains
from healthcore.kernel.users import resolve_key

logger = logging.getLogger(__name__)


def _roll_domain(
    store: KeyValueStore,
    user_id: str | None,
    domain: CounterDomain,
    today: str,
    max_items: int,
) -> None:
    key = resolve_key(user_id, domain.suffix)
    record = connector.read_dict(store, key)
    record_day = record.get(domain.date_field) if record is not None else None

    if record is not None and isinstance(record_day, str) and record_day and record_day != today:
        if domain.has_activity(record):
            history_key = resolve_key(user_id, domain.history_suffix)
            connector.prepend_bounded(store, history_key, domain.snapshot(record, record_day), max_items)
            logger.debug("Archived %s for %s (%s)", domain.name, record_day, user_id)
        else:
            logger.debug("Discarded empty %s day %s (%s)", domain.name, record_day, user_id)

    if record_day != today:
        connector.write_json(store, key, domain.fresh(today, record))


def ensure_daily_reset(
    store: KeyValueStore,
    user_id: str | None = None,
    *,
    today: str | None = None,
    max_items: int | None = None,
) -> bool:
    """Bring the user's daily counters up to `today` (local date, YYYY-MM-DD).

    Returns True when a rollover ran, False when today was already handled
    or the store could not be read. Never raises.
    """
    day = today or clock.today_local()
    limit = settings.history_max_items if max_items is None else max_items
    guard_key = resolve_key(user_id, LAST_RESET_SUFFIX)

    try:
        if store.get(guard_key) == day:
            return False
    except Exception:
        logger.warning("Could not read last reset date for %s", user_id, exc_info=True)
        return False

    for domain in list_domains():
        try:
            _roll_domain(store, user_id, domain, day, limit)
        except Exception:
            logger.warning("Rollover of %s failed for %s", domain.name, user_id, exc_info=True)

    try:
        store.set(guard_key, day)
    except Exception:
        logger.warning("Could not persist last reset date for %s", user_id, exc_info=True)
        return False

    logger.info("Daily rollover to %s for %s", day, user_id or "legacy user")
    return True
