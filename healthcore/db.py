"""Key/value persistence: the engine's only I/O dependency.

Values are opaque strings (JSON-serialized records). No transactions across
keys: every operation is a single read or a single upsert, last write wins.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from healthcore.config import settings

metadata = MetaData()

kv_table = Table(
    "kv_store",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class SqlKeyValueStore:
    """KeyValueStore over a single SQL table."""

    def __init__(self, bind: Engine):
        self._engine = bind

    def get(self, key: str) -> str | None:
        with self._engine.connect() as conn:
            return conn.execute(select(kv_table.c.value).where(kv_table.c.key == key)).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        with self._engine.begin() as conn:
            result = conn.execute(update(kv_table).where(kv_table.c.key == key).values(value=value))
            if result.rowcount == 0:
                conn.execute(insert(kv_table).values(key=key, value=value))


class MemoryKeyValueStore:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


def make_engine(url: str) -> Engine:
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


engine = make_engine(settings.database_url)


def init_db(bind: Engine | None = None) -> None:
    """Create the kv_store table if missing (idempotent)."""
    metadata.create_all(bind or engine)


def get_store() -> KeyValueStore:
    return SqlKeyValueStore(engine)
