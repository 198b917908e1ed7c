import datetime
from zoneinfo import ZoneInfo

import pytest

from recurring_planner.core import clock
from recurring_planner.core.config import get_max_expand_days, get_timezone_name
from recurring_planner.core.errors import InvalidZone


def test_resolve_zone_rejects_unknown_identifier():
    with pytest.raises(InvalidZone):
        clock.resolve_zone("Mars/Olympus_Mons")
    with pytest.raises(InvalidZone):
        clock.resolve_zone("")


def test_init_timezone_prefers_environment(monkeypatch):
    monkeypatch.setenv("PLANNER_TIMEZONE", "Asia/Tokyo")

    assert get_timezone_name() == "Asia/Tokyo"
    assert clock.init_timezone().key == "Asia/Tokyo"
    assert clock.get_timezone().key == "Asia/Tokyo"


def test_today_uses_zone_local_date():
    instant = datetime.datetime(2026, 1, 1, 20, 30, tzinfo=datetime.timezone.utc)

    assert clock.today(ZoneInfo("UTC"), now=instant) == datetime.date(2026, 1, 1)
    assert clock.today(ZoneInfo("Asia/Tokyo"), now=instant) == datetime.date(2026, 1, 2)
    assert clock.today(ZoneInfo("America/Los_Angeles"), now=instant) == datetime.date(2026, 1, 1)


def test_day_bounds_across_daylight_saving_changes():
    zone = ZoneInfo("America/New_York")

    spring_start, spring_end = clock.day_bounds(datetime.date(2026, 3, 8), zone)
    fall_start, fall_end = clock.day_bounds(datetime.date(2026, 11, 1), zone)
    plain_start, plain_end = clock.day_bounds(datetime.date(2026, 6, 1), zone)

    assert spring_end - spring_start == datetime.timedelta(hours=23)
    assert fall_end - fall_start == datetime.timedelta(hours=25)
    assert plain_end - plain_start == datetime.timedelta(hours=24)
    assert spring_start == datetime.datetime(2026, 3, 8, 5, 0, tzinfo=datetime.timezone.utc)
    assert spring_end == datetime.datetime(2026, 3, 9, 4, 0, tzinfo=datetime.timezone.utc)


def test_max_expand_days_is_clamped(monkeypatch):
    monkeypatch.setenv("PLANNER_MAX_EXPAND_DAYS", "999999")
    assert get_max_expand_days() == 3660
    monkeypatch.setenv("PLANNER_MAX_EXPAND_DAYS", "0")
    assert get_max_expand_days() == 1
    monkeypatch.setenv("PLANNER_MAX_EXPAND_DAYS", "many")
    assert get_max_expand_days() == 366
