from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from healthcore.config import settings


def local_now(tz_name: str | None = None) -> datetime:
    """Current time in `tz_name`, or in the host's local zone when unset."""
    name = tz_name if tz_name is not None else settings.default_tz
    if name:
        return datetime.now(ZoneInfo(name))
    return datetime.now().astimezone()


def today_local(tz_name: str | None = None) -> str:
    """Local calendar date as YYYY-MM-DD. Never UTC unless the zone is UTC."""
    return local_now(tz_name).date().isoformat()


def parse_day(value: str) -> date:
    return date.fromisoformat(value)


def epoch_ms() -> int:
    return int(datetime.now().timestamp() * 1000)
