"""Month summaries and day details for the calendar views."""

from __future__ import annotations

import calendar
import datetime
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlmodel import Session

from recurring_planner.services.timeline_service import DailyItem, _get_timeline_data, daily_lists_between


@dataclass(frozen=True)
class DaySummary:
    pending_count: int = 0
    done_count: int = 0
    skipped_count: int = 0
    occurrence_count: int = 0
    todo_count: int = 0

    @property
    def total(self) -> int:
        return self.occurrence_count + self.todo_count


@dataclass(frozen=True)
class DayDetail:
    date: datetime.date
    items: List[DailyItem]
    completion_rate: int


def normalize_year_month(year: int, month: int) -> Tuple[int, int]:
    """Roll month numbers outside 1..12 into the neighbouring years."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return year, month


def month_bounds(year: int, month: int) -> Tuple[datetime.date, datetime.date]:
    year, month = normalize_year_month(year, month)
    start = datetime.date(year, month, 1)
    end = start + datetime.timedelta(days=calendar.monthrange(year, month)[1])
    return start, end


def _summarize(items: List[DailyItem]) -> DaySummary:
    return DaySummary(
        pending_count=sum(1 for item in items if item.status == "pending"),
        done_count=sum(1 for item in items if item.status == "done"),
        skipped_count=sum(1 for item in items if item.status == "skipped"),
        occurrence_count=sum(1 for item in items if item.kind == "occurrence"),
        todo_count=sum(1 for item in items if item.kind == "todo"),
    )


def summarize_range(db: Session, start: datetime.date, end: datetime.date) -> Dict[datetime.date, DaySummary]:
    """Read-only per-day tallies; one batched expansion per template for the whole range."""
    return {day: _summarize(items) for day, items in daily_lists_between(db, start, end).items()}


def month_summary(db: Session, year: int, month: int) -> Dict[datetime.date, DaySummary]:
    start, end = month_bounds(year, month)
    return summarize_range(db, start, end)


def month_grid(
    db: Session,
    year: int,
    month: int,
    today: Optional[datetime.date] = None,
) -> Dict[str, Any]:
    """Monday-first weeks covering the month, padding days included."""
    year, month = normalize_year_month(year, month)
    weeks = calendar.Calendar(firstweekday=0).monthdatescalendar(year, month)
    summaries = summarize_range(db, weeks[0][0], weeks[-1][-1] + datetime.timedelta(days=1))

    calendar_data = []
    for week in weeks:
        week_data = []
        for day in week:
            summary = summaries[day]
            week_data.append(
                {
                    "date": day.isoformat(),
                    "day_num": day.day,
                    "is_current_month": day.month == month,
                    "is_today": day == today,
                    "pending_count": summary.pending_count,
                    "done_count": summary.done_count,
                    "skipped_count": summary.skipped_count,
                    "occurrence_count": summary.occurrence_count,
                    "todo_count": summary.todo_count,
                    "total_count": summary.total,
                }
            )
        calendar_data.append(week_data)

    return {"calendar_data": calendar_data, "year": year, "month": month}


def day_detail(db: Session, day: datetime.date) -> DayDetail:
    items, completion_rate = _get_timeline_data(db, day)
    return DayDetail(date=day, items=items, completion_rate=completion_rate)


__all__ = [
    "DayDetail",
    "DaySummary",
    "day_detail",
    "month_bounds",
    "month_grid",
    "month_summary",
    "normalize_year_month",
    "summarize_range",
]
