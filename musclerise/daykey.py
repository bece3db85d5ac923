# -*- coding: utf-8 -*-
"""Day key resolution.

A *day key* (``YYYY-MM-DD``) names one activity cycle. The cycle starts at a
boundary hour rather than at midnight, so 02:00 on the 5th still belongs to
the 4th when the boundary is 04:00. The same boundary drives the client
reducer and the server reset service.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo

DEFAULT_DAY_BOUNDARY_HOUR = 4

TzLike = Union[str, tzinfo, None]


def _zone(tz: TzLike) -> Optional[tzinfo]:
    if tz is None or isinstance(tz, tzinfo):
        return tz
    return ZoneInfo(tz)


def wall_time(moment: datetime, tz: TzLike = None) -> datetime:
    """Return ``moment`` as a naive local wall-clock time.

    Naive inputs are taken to be local already. Aware inputs are converted to
    ``tz`` (or the host zone when ``tz`` is None).
    """
    if moment.tzinfo is None:
        return moment
    zone = _zone(tz)
    local = moment.astimezone(zone) if zone is not None else moment.astimezone()
    return local.replace(tzinfo=None)


def parse_day_key(day_key: str) -> date:
    return date.fromisoformat(day_key)


def resolve_day_key(
    now: datetime,
    override: Optional[str] = None,
    *,
    boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR,
    tz: TzLike = None,
) -> str:
    if override:
        return override
    local = wall_time(now, tz)
    day = local.date()
    if local.hour < boundary_hour:
        day = day - timedelta(days=1)
    return day.isoformat()


def shift_day_key(day_key: str, days: int) -> str:
    return (parse_day_key(day_key) + timedelta(days=days)).isoformat()


def previous_day_key(day_key: str) -> str:
    return shift_day_key(day_key, -1)


def last_boundary(
    now: datetime,
    *,
    boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR,
    tz: TzLike = None,
) -> datetime:
    """Most recent boundary-hour crossing at or before ``now`` (naive local)."""
    local = wall_time(now, tz)
    boundary = local.replace(hour=boundary_hour, minute=0, second=0, microsecond=0)
    if local < boundary:
        boundary = boundary - timedelta(days=1)
    return boundary


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def needs_reset(
    last_reset_at: Union[str, datetime, None],
    now: datetime,
    *,
    boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR,
    tz: TzLike = None,
) -> bool:
    last = parse_timestamp(last_reset_at)
    if last is None:
        return True
    return wall_time(last, tz) < last_boundary(now, boundary_hour=boundary_hour, tz=tz)


class DayCycle:
    """Boundary hour and zone bundled for callers that resolve many keys."""

    def __init__(self, boundary_hour: int = DEFAULT_DAY_BOUNDARY_HOUR, tz: TzLike = None) -> None:
        if not 0 <= boundary_hour <= 23:
            raise ValueError("boundary_hour must be within 0..23")
        self.boundary_hour = boundary_hour
        self.tz = _zone(tz)

    def day_key(self, now: datetime, override: Optional[str] = None) -> str:
        return resolve_day_key(now, override, boundary_hour=self.boundary_hour, tz=self.tz)

    def day_key_of(self, timestamp: Union[str, datetime, None]) -> Optional[str]:
        moment = parse_timestamp(timestamp)
        return self.day_key(moment) if moment is not None else None

    def needs_reset(self, last_reset_at: Union[str, datetime, None], now: datetime) -> bool:
        return needs_reset(last_reset_at, now, boundary_hour=self.boundary_hour, tz=self.tz)

    def __repr__(self) -> str:
        return f"DayCycle(boundary_hour={self.boundary_hour}, tz={self.tz!r})"
