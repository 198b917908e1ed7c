"""Recurrence rules: pattern evaluation and window expansion.

Rules are immutable values. Exception dates are owned by the template and are
passed in separately, so every function here stays pure. Finding the next
occurrence uses direct arithmetic (day/week offsets, in-month computation and
month-level jumps), never a day-by-day walk from the anchor, so the cost does
not grow with the age of the series.
"""

from __future__ import annotations

import calendar
import datetime
import functools
from dataclasses import dataclass, replace
from typing import AbstractSet, FrozenSet, Iterator, List, Optional, Union

from dateutil.relativedelta import relativedelta

ONE_DAY = datetime.timedelta(days=1)
LAST = -1
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
ORDINAL_NAMES = {1: "1st", 2: "2nd", 3: "3rd", 4: "4th", 5: "5th", LAST: "last"}

# Feb 29 can be eight years apart around a skipped leap year (2096 -> 2104).
_MAX_MONTH_JUMPS = 12 * 9


@dataclass(frozen=True)
class EveryNDays:
    interval: int = 1

    kind = "every_n_days"


@dataclass(frozen=True)
class Weekly:
    weekdays: FrozenSet[int]
    interval: int = 1

    kind = "weekly"


@dataclass(frozen=True)
class MonthlyByDay:
    days: FrozenSet[int]

    kind = "monthly_day"


@dataclass(frozen=True)
class MonthlyByWeekday:
    ordinals: FrozenSet[int]
    weekdays: FrozenSet[int]

    kind = "monthly_weekday"


@dataclass(frozen=True)
class CertainMonths:
    months: FrozenSet[int]
    days: FrozenSet[int]

    kind = "certain_months"


@dataclass(frozen=True)
class Once:
    kind = "once"


Pattern = Union[EveryNDays, Weekly, MonthlyByDay, MonthlyByWeekday, CertainMonths, Once]

PATTERN_KINDS = {
    cls.kind: cls for cls in (EveryNDays, Weekly, MonthlyByDay, MonthlyByWeekday, CertainMonths, Once)
}


@dataclass(frozen=True)
class RecurrenceRule:
    anchor: datetime.date
    pattern: Pattern
    until: Optional[datetime.date] = None
    count: Optional[int] = None


def _month_length(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _week_index(day: datetime.date) -> int:
    # date(1, 1, 1) is a Monday, so this counts Monday-based weeks.
    return (day.toordinal() - 1) // 7


def _ordinal_matches(day: datetime.date, ordinals: AbstractSet[int]) -> bool:
    if (day.day - 1) // 7 + 1 in ordinals:
        return True
    return LAST in ordinals and day.day + 7 > _month_length(day.year, day.month)


def _matches_pattern(pattern: Pattern, anchor: datetime.date, day: datetime.date) -> bool:
    if isinstance(pattern, EveryNDays):
        return (day - anchor).days % pattern.interval == 0
    if isinstance(pattern, Weekly):
        if day.weekday() not in pattern.weekdays:
            return False
        return (_week_index(day) - _week_index(anchor)) % pattern.interval == 0
    if isinstance(pattern, MonthlyByDay):
        return day.day in pattern.days
    if isinstance(pattern, MonthlyByWeekday):
        return day.weekday() in pattern.weekdays and _ordinal_matches(day, pattern.ordinals)
    if isinstance(pattern, CertainMonths):
        return day.month in pattern.months and day.day in pattern.days
    if isinstance(pattern, Once):
        return day == anchor
    raise TypeError(f"Unsupported pattern: {pattern!r}")


def _days_in_month(pattern: Pattern, year: int, month: int) -> List[int]:
    """Sorted day numbers a monthly-style pattern produces in one month."""
    length = _month_length(year, month)
    if isinstance(pattern, MonthlyByDay):
        return sorted(day for day in pattern.days if day <= length)
    if isinstance(pattern, CertainMonths):
        if month not in pattern.months:
            return []
        return sorted(day for day in pattern.days if day <= length)
    if isinstance(pattern, MonthlyByWeekday):
        first_weekday = calendar.monthrange(year, month)[0]
        found = set()
        for weekday in pattern.weekdays:
            first = 1 + (weekday - first_weekday) % 7
            last = first + 7 * ((length - first) // 7)
            for ordinal in pattern.ordinals:
                day = last if ordinal == LAST else first + 7 * (ordinal - 1)
                if day <= length:
                    found.add(day)
        return sorted(found)
    raise TypeError(f"Not a monthly pattern: {pattern!r}")


def _next_month(month_start: datetime.date) -> Optional[datetime.date]:
    if month_start.year == datetime.MAXYEAR and month_start.month == 12:
        return None
    return month_start + relativedelta(months=1)


def _next_weekly(pattern: Weekly, anchor: datetime.date, start: datetime.date) -> datetime.date:
    week_start = start - datetime.timedelta(days=start.weekday())
    floor = start.weekday()
    offset = (_week_index(start) - _week_index(anchor)) % pattern.interval
    if offset:
        week_start += datetime.timedelta(weeks=pattern.interval - offset)
        floor = 0
    ordered = sorted(pattern.weekdays)
    for weekday in ordered:
        if weekday >= floor:
            return week_start + datetime.timedelta(days=weekday)
    return week_start + datetime.timedelta(weeks=pattern.interval, days=ordered[0])


def _next_monthly(pattern: Pattern, start: datetime.date) -> Optional[datetime.date]:
    month_start = start.replace(day=1)
    floor = start.day
    for _ in range(_MAX_MONTH_JUMPS + 1):
        for day in _days_in_month(pattern, month_start.year, month_start.month):
            if day >= floor:
                return month_start.replace(day=day)
        month_start = _next_month(month_start)
        if month_start is None:
            return None
        floor = 1
    return None


def _next_pattern_date(pattern: Pattern, anchor: datetime.date, start: datetime.date) -> Optional[datetime.date]:
    """First date >= ``start`` (itself >= ``anchor``) the bare pattern produces."""
    if isinstance(pattern, EveryNDays):
        offset = (start - anchor).days
        steps = -(-offset // pattern.interval)
        return anchor + datetime.timedelta(days=steps * pattern.interval)
    if isinstance(pattern, Weekly):
        return _next_weekly(pattern, anchor, start)
    if isinstance(pattern, (MonthlyByDay, MonthlyByWeekday, CertainMonths)):
        return _next_monthly(pattern, start)
    if isinstance(pattern, Once):
        return anchor if start <= anchor else None
    raise TypeError(f"Unsupported pattern: {pattern!r}")


@functools.lru_cache(maxsize=1024)
def _count_end(pattern: Pattern, anchor: datetime.date, count: int) -> Optional[datetime.date]:
    # Exception dates still consume a slot, so they play no part here.
    current = None
    try:
        current = _next_pattern_date(pattern, anchor, anchor)
        for _ in range(count - 1):
            if current is None:
                break
            following = _next_pattern_date(pattern, anchor, current + ONE_DAY)
            if following is None:
                break
            current = following
    except OverflowError:
        pass
    return current


def series_end(rule: RecurrenceRule) -> Optional[datetime.date]:
    """Last date the series may produce, or None for an open-ended series."""
    ends = []
    if rule.until is not None:
        ends.append(rule.until)
    if rule.count is not None:
        count_end = _count_end(rule.pattern, rule.anchor, rule.count)
        if count_end is not None:
            ends.append(count_end)
    return min(ends) if ends else None


def occurs_on(
    rule: RecurrenceRule,
    day: datetime.date,
    exceptions: AbstractSet[datetime.date] = frozenset(),
) -> bool:
    if day < rule.anchor or day in exceptions:
        return False
    end = series_end(rule)
    if end is not None and day > end:
        return False
    return _matches_pattern(rule.pattern, rule.anchor, day)


def next_on_or_after(
    rule: RecurrenceRule,
    day: datetime.date,
    exceptions: AbstractSet[datetime.date] = frozenset(),
) -> Optional[datetime.date]:
    end = series_end(rule)
    floor = max(day, rule.anchor)
    try:
        while end is None or floor <= end:
            candidate = _next_pattern_date(rule.pattern, rule.anchor, floor)
            if candidate is None or (end is not None and candidate > end):
                return None
            if candidate not in exceptions:
                return candidate
            floor = candidate + ONE_DAY
    except OverflowError:
        return None
    return None


@dataclass(frozen=True)
class Expansion:
    """Dates of ``rule`` in ``[start, end)``; iterating again starts over."""

    rule: RecurrenceRule
    start: datetime.date
    end: datetime.date
    exceptions: FrozenSet[datetime.date] = frozenset()

    def __iter__(self) -> Iterator[datetime.date]:
        cursor = self.start
        while cursor < self.end:
            found = next_on_or_after(self.rule, cursor, self.exceptions)
            if found is None or found >= self.end:
                return
            yield found
            if found == datetime.date.max:
                return
            cursor = found + ONE_DAY

    def __contains__(self, day: object) -> bool:
        if not isinstance(day, datetime.date):
            return False
        return self.start <= day < self.end and occurs_on(self.rule, day, self.exceptions)


def expand(
    rule: RecurrenceRule,
    start: datetime.date,
    end: datetime.date,
    exceptions: AbstractSet[datetime.date] = frozenset(),
) -> Expansion:
    return Expansion(rule=rule, start=start, end=end, exceptions=frozenset(exceptions))


def anchored(rule: RecurrenceRule) -> Optional[RecurrenceRule]:
    """Move the anchor forward onto the first date the pattern produces.

    Returns None when the pattern produces nothing before ``until``.
    """
    try:
        first = _next_pattern_date(rule.pattern, rule.anchor, rule.anchor)
    except OverflowError:
        return None
    if first is None or (rule.until is not None and first > rule.until):
        return None
    if first == rule.anchor:
        return rule
    return replace(rule, anchor=first)


def _join_numbers(values) -> str:
    return ", ".join(str(value) for value in sorted(values))


def describe(rule: RecurrenceRule) -> str:
    pattern = rule.pattern
    if isinstance(pattern, EveryNDays):
        text = "Every day" if pattern.interval == 1 else f"Every {pattern.interval} days"
    elif isinstance(pattern, Weekly):
        days = ", ".join(WEEKDAY_NAMES[day] for day in sorted(pattern.weekdays))
        text = f"Every {days}" if pattern.interval == 1 else f"Every {pattern.interval} weeks on {days}"
    elif isinstance(pattern, MonthlyByDay):
        text = f"Monthly on day {_join_numbers(pattern.days)}"
    elif isinstance(pattern, MonthlyByWeekday):
        ordinals = ", ".join(
            ORDINAL_NAMES[ordinal] for ordinal in sorted(pattern.ordinals, key=lambda o: 6 if o == LAST else o)
        )
        days = ", ".join(WEEKDAY_NAMES[day] for day in sorted(pattern.weekdays))
        text = f"Monthly on the {ordinals} {days}"
    elif isinstance(pattern, CertainMonths):
        months = ", ".join(calendar.month_abbr[month] for month in sorted(pattern.months))
        text = f"Yearly on day {_join_numbers(pattern.days)} of {months}"
    else:
        return f"Once on {rule.anchor.isoformat()}"

    if rule.until is not None:
        text += f" until {rule.until.isoformat()}"
    if rule.count is not None:
        text += f" for {rule.count} occurrences"
    return text


__all__ = [
    "LAST",
    "PATTERN_KINDS",
    "Pattern",
    "EveryNDays",
    "Weekly",
    "MonthlyByDay",
    "MonthlyByWeekday",
    "CertainMonths",
    "Once",
    "RecurrenceRule",
    "Expansion",
    "anchored",
    "describe",
    "expand",
    "next_on_or_after",
    "occurs_on",
    "series_end",
]
