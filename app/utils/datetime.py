"""Timestamps for notification rows.

Rows are stored as naive datetimes in the configured ``APP_TIMEZONE`` (SQLite
drops offsets) and read back as aware values in that same timezone.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import get_settings

_FIXED_OFFSET = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the timezone named by ``APP_TIMEZONE``, UTC when unresolvable."""

    name = (get_settings().app_timezone or "").strip()
    if not name or name.upper() in {"UTC", "GMT", "Z"}:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        pass
    match = _FIXED_OFFSET.match(name)
    if match is None:
        return timezone.utc
    offset = timedelta(
        hours=int(match.group("hours")), minutes=int(match.group("minutes") or 0)
    )
    return timezone(-offset if match.group("sign") == "-" else offset)


def now_in_app_naive_datetime() -> datetime:
    """Current wall-clock time in the app timezone, without ``tzinfo``."""

    return datetime.now(tz=get_app_timezone()).replace(tzinfo=None)


def as_app_timezone(value: datetime | None) -> datetime | None:
    """Attach (naive) or convert to (aware) the app timezone."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=get_app_timezone())
    return value.astimezone(get_app_timezone())
