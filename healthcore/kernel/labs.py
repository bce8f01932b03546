"""Lab draw history: append-only list of LabEntry records per user."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from healthcore.db import KeyValueStore
from healthcore.kernel import connector, features
from healthcore.kernel.models import HealthLabs, LabEntry
from healthcore.kernel.users import resolve_key

logger = logging.getLogger(__name__)

LABS_SUFFIX = "labs"


def get_labs(store: KeyValueStore, user_id: str | None) -> list[LabEntry]:
    entries: list[LabEntry] = []
    for raw in connector.read_list(store, resolve_key(user_id, LABS_SUFFIX)):
        try:
            entries.append(LabEntry.model_validate(raw))
        except ValidationError:
            logger.debug("Skipping malformed lab entry for %s", user_id)
    return entries


def add_lab(store: KeyValueStore, user_id: str | None, entry: LabEntry) -> list[LabEntry]:
    key = resolve_key(user_id, LABS_SUFFIX)
    raw = connector.read_list(store, key)
    raw.append(entry.to_record())
    connector.write_json(store, key, raw)
    return get_labs(store, user_id)


def latest_lab(entries: list[LabEntry]) -> LabEntry | None:
    """Entry with the greatest ISO date string; the earliest-recorded one wins ties."""
    if not entries:
        return None
    return max(entries, key=lambda e: e.date)


def labs_for_engine(entry: LabEntry | None) -> HealthLabs:
    """Engine labs from a stored entry: testosterone converted ng/dL → nmol/L."""
    if entry is None:
        return HealthLabs()
    other = entry.other or {}
    return HealthLabs(
        testosterone=features.testosterone_ng_dl_to_nmol_l(entry.testosterone),
        bilirubin=other.get("bilirubin"),
        uric_acid=other.get("uricAcid"),
        platelets=other.get("platelets"),
    )
