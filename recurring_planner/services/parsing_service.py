"""Date/time parsing and normalization helpers."""

from __future__ import annotations

import datetime
import re
from typing import Any, Iterable, List, Optional

from dateutil import parser as date_parser

WEEKDAY_ALIASES = {
    "mon": 0,
    "monday": 0,
    "tue": 1,
    "tues": 1,
    "tuesday": 1,
    "wed": 2,
    "wednesday": 2,
    "thu": 3,
    "thur": 3,
    "thurs": 3,
    "thursday": 3,
    "fri": 4,
    "friday": 4,
    "sat": 5,
    "saturday": 5,
    "sun": 6,
    "sunday": 6,
    "月": 0,
    "火": 1,
    "水": 2,
    "木": 3,
    "金": 4,
    "土": 5,
    "日": 6,
}

ORDINAL_ALIASES = {
    "first": 1,
    "1st": 1,
    "second": 2,
    "2nd": 2,
    "third": 3,
    "3rd": 3,
    "fourth": 4,
    "4th": 4,
    "fifth": 5,
    "5th": 5,
    "last": -1,
}


def parse_iso_date(value: str) -> datetime.date:
    """Strict ``YYYY-MM-DD``; raises ValueError otherwise."""
    return datetime.datetime.strptime(value.strip(), "%Y-%m-%d").date()


def _parse_date(value: Any) -> Optional[datetime.date]:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return parse_iso_date(value)
        except ValueError:
            try:
                return date_parser.parse(value).date()
            except (ValueError, TypeError, OverflowError):
                return None
    return None


def _normalize_hhmm(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip()
    colon_match = re.fullmatch(r"([01]?\d|2[0-3])\s*:\s*([0-5]\d)", text)
    if colon_match:
        hour = int(colon_match.group(1))
        minute = int(colon_match.group(2))
        return f"{hour:02d}:{minute:02d}"
    return None


def _bool_from_value(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on", "done"}:
            return True
        if lowered in {"0", "false", "no", "off", "pending", ""}:
            return False
    return default


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part for part in re.split(r"[,\s]+", value.strip()) if part]
    if isinstance(value, Iterable):
        return list(value)
    return [value]


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _parse_int_list(value: Any) -> Optional[List[int]]:
    """Integers from a list or comma separated string; None if any item is not one."""
    parsed = []
    for item in _as_list(value):
        number = _parse_int(item)
        if number is None:
            return None
        parsed.append(number)
    return parsed


def _parse_weekdays(value: Any) -> Optional[List[int]]:
    weekdays = []
    for item in _as_list(value):
        if isinstance(item, str) and item.strip().lower() in WEEKDAY_ALIASES:
            weekdays.append(WEEKDAY_ALIASES[item.strip().lower()])
            continue
        number = _parse_int(item)
        if number is None:
            return None
        weekdays.append(number)
    return weekdays


def _parse_ordinals(value: Any) -> Optional[List[int]]:
    ordinals = []
    for item in _as_list(value):
        if isinstance(item, str) and item.strip().lower() in ORDINAL_ALIASES:
            ordinals.append(ORDINAL_ALIASES[item.strip().lower()])
            continue
        number = _parse_int(item)
        if number is None:
            return None
        ordinals.append(number)
    return ordinals


def _join_ints(values: Iterable[int]) -> str:
    return ",".join(str(value) for value in sorted(values))


def _split_ints(value: Optional[str]) -> List[int]:
    if not value:
        return []
    return [int(part) for part in value.split(",") if part.strip()]
