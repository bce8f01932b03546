"""Multi-user store.

One JSON record holds every profile plus the current-user pointer. All other
per-user data lives under keys derived by :func:`get_storage_key`.

Secrets are compared as plain strings and identifiers are matched exactly
(after trimming surrounding whitespace): no hashing, no case folding.
"""

from __future__ import annotations

import logging
import uuid

from pydantic import ValidationError

from healthcore.config import settings
from healthcore.db import KeyValueStore
from healthcore.kernel import clock, connector
from healthcore.kernel.models import (
    AddUserResult,
    ProfileUpdate,
    UserCandidate,
    UserProfile,
    UsersState,
)

logger = logging.getLogger(__name__)

# Per-user data copied over by the legacy migration.
LEGACY_DATA_SUFFIXES = (
    "nutrition",
    "nutrition_history",
    "water",
    "water_history",
    "workout_history",
    "labs",
    "last_reset_date",
)


def get_storage_key(user_id: str, suffix: str) -> str:
    return f"user_{user_id}_{suffix}"


def legacy_key(suffix: str) -> str:
    return f"{settings.legacy_key_prefix}_{suffix}"


def resolve_key(user_id: str | None, suffix: str) -> str:
    """Namespaced key for a user, or the pre-multi-user key when there is none."""
    if user_id:
        return get_storage_key(user_id, suffix)
    return legacy_key(suffix)


# ---------------------------------------------------------------------------
# State record
# ---------------------------------------------------------------------------

def get_users_state(store: KeyValueStore) -> UsersState:
    """Load the store record. Malformed data yields an empty store; bad profile entries are skipped."""
    raw = connector.read_dict(store, settings.users_storage_key)
    if raw is None or not isinstance(raw.get("users"), list):
        return UsersState()

    users: list[UserProfile] = []
    for entry in raw["users"]:
        try:
            users.append(UserProfile.model_validate(entry))
        except ValidationError:
            logger.warning("Ignoring malformed user profile entry; it is kept in storage as is")

    current = raw.get("currentUserId")
    if not any(u.id == current for u in users):
        current = None
    return UsersState(current_user_id=current, users=users)


def _unparsed_entries(store: KeyValueStore) -> list:
    """Stored profile entries that do not validate, so a save does not erase them."""
    raw = connector.read_dict(store, settings.users_storage_key)
    if raw is None or not isinstance(raw.get("users"), list):
        return []
    kept = []
    for entry in raw["users"]:
        try:
            UserProfile.model_validate(entry)
        except ValidationError:
            kept.append(entry)
    return kept


def save_users_state(store: KeyValueStore, state: UsersState) -> None:
    """Write the store record. Malformed entries already stored are written back untouched."""
    payload = {
        "currentUserId": state.current_user_id,
        "users": [u.to_record() for u in state.users] + _unparsed_entries(store),
    }
    connector.write_json(store, settings.users_storage_key, payload)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def add_user(
    store: KeyValueStore,
    candidate: UserCandidate,
    max_users: int | None = None,
) -> AddUserResult:
    limit = settings.max_users if max_users is None else max_users
    state = get_users_state(store)
    if len(state.users) >= limit:
        logger.info("Registration rejected: user limit (%d) reached", limit)
        return AddUserResult(success=False, error=f"User limit reached ({limit}).")

    user = UserProfile(
        **candidate.model_dump(),
        id=str(uuid.uuid4()),
        created_at=clock.epoch_ms(),
    )
    state.users.append(user)
    save_users_state(store, state)
    logger.info("Registered user %s", user.id)
    return AddUserResult(success=True, user=user)


def find_user_by_identifier_and_secret(
    store: KeyValueStore,
    identifier: str,
    secret: str,
) -> UserProfile | None:
    """First profile whose phone or email equals `identifier` and whose password equals `secret`."""
    ident = identifier.strip()
    for user in get_users_state(store).users:
        if (user.phone == ident or user.email == ident) and user.password == secret:
            return user
    return None


def get_user(store: KeyValueStore, user_id: str) -> UserProfile | None:
    return next((u for u in get_users_state(store).users if u.id == user_id), None)


def list_users(store: KeyValueStore) -> list[UserProfile]:
    return get_users_state(store).users


def update_user(store: KeyValueStore, user_id: str, updates: ProfileUpdate) -> UserProfile | None:
    """Merge the fields set on `updates`, nulls included. Unknown ids are a silent no-op (returns None)."""
    state = get_users_state(store)
    for index, user in enumerate(state.users):
        if user.id == user_id:
            merged = UserProfile.model_validate(
                {**user.model_dump(), **updates.model_dump(exclude_unset=True)}
            )
            state.users[index] = merged
            save_users_state(store, state)
            return merged
    return None


def get_current_user(store: KeyValueStore) -> UserProfile | None:
    state = get_users_state(store)
    if state.current_user_id is None:
        return None
    return next((u for u in state.users if u.id == state.current_user_id), None)


def set_current_user_id(store: KeyValueStore, user_id: str | None) -> None:
    state = get_users_state(store)
    if user_id is not None and not any(u.id == user_id for u in state.users):
        return
    state.current_user_id = user_id
    save_users_state(store, state)


def login(store: KeyValueStore, identifier: str, secret: str) -> UserProfile | None:
    user = find_user_by_identifier_and_secret(store, identifier, secret)
    if user is not None:
        set_current_user_id(store, user.id)
    return user


def logout(store: KeyValueStore) -> None:
    set_current_user_id(store, None)


# ---------------------------------------------------------------------------
# Legacy single-user migration
# ---------------------------------------------------------------------------

def migrate_legacy_user(store: KeyValueStore) -> UserProfile | None:
    """Adopt the pre-multi-user account, once.

    Only runs while the store holds no users. The legacy profile becomes a
    regular user and its data is copied under namespaced keys; existing
    namespaced keys are never overwritten.
    """
    if get_users_state(store).users:
        return None

    legacy = connector.read_dict(store, legacy_key("user"))
    if legacy is None:
        return None
    try:
        candidate = UserCandidate.model_validate(legacy)
    except ValidationError:
        logger.warning("Legacy user record is malformed; skipping migration")
        return None

    user = UserProfile(**candidate.model_dump(), id=str(uuid.uuid4()), created_at=clock.epoch_ms())
    signed_in = store.get(legacy_key("auth")) == "true"
    save_users_state(store, UsersState(current_user_id=user.id if signed_in else None, users=[user]))

    for suffix in LEGACY_DATA_SUFFIXES:
        raw = store.get(legacy_key(suffix))
        target = get_storage_key(user.id, suffix)
        if raw is not None and store.get(target) is None:
            store.set(target, raw)

    logger.info("Migrated legacy single-user data to user %s", user.id)
    return user
