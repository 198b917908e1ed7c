"""Calendar clock: zone-local dates and day boundaries."""

from __future__ import annotations

import datetime
import logging
import threading
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from recurring_planner.core.config import get_timezone_name
from recurring_planner.core.errors import InvalidZone

logger = logging.getLogger(__name__)

_app_zone: Optional[ZoneInfo] = None
_zone_lock = threading.Lock()


def resolve_zone(zone_name: str) -> ZoneInfo:
    """Resolve an IANA identifier, raising ``InvalidZone`` when it is unknown."""
    name = (zone_name or "").strip()
    if not name:
        raise InvalidZone(zone_name)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidZone(zone_name) from exc


def init_timezone(zone_name: Optional[str] = None) -> ZoneInfo:
    """Resolve the configured zone once for the process.

    Called at application or CLI start so that a bad identifier is fatal there
    rather than on the first request.
    """
    global _app_zone
    zone = resolve_zone(zone_name if zone_name is not None else get_timezone_name())
    with _zone_lock:
        _app_zone = zone
    logger.info("Using time zone %s", zone.key)
    return zone


def get_timezone() -> ZoneInfo:
    if _app_zone is None:
        return init_timezone()
    return _app_zone


def today(zone: Optional[ZoneInfo] = None, now: Optional[datetime.datetime] = None) -> datetime.date:
    """Zone-local calendar date of ``now`` (default: the current instant)."""
    zone = zone or get_timezone()
    instant = now or datetime.datetime.now(datetime.timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=datetime.timezone.utc)
    return instant.astimezone(zone).date()


def _local_midnight(day: datetime.date, zone: ZoneInfo) -> datetime.datetime:
    # 日本語: UTC の瞬間で返すので差分が実時間になる / English: UTC instants, so subtracting bounds gives elapsed time
    wall = datetime.datetime.combine(day, datetime.time.min, tzinfo=zone)
    return wall.astimezone(datetime.timezone.utc)


def day_bounds(day: datetime.date, zone: Optional[ZoneInfo] = None) -> Tuple[datetime.datetime, datetime.datetime]:
    """Half-open ``[start, end)`` UTC instants of ``day`` in ``zone``.

    A day that spans a daylight-saving transition is 23 or 25 hours long.
    """
    zone = zone or get_timezone()
    start = _local_midnight(day, zone)
    end = _local_midnight(day + datetime.timedelta(days=1), zone)
    return start, end


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp used for stored ``*_at`` columns."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
