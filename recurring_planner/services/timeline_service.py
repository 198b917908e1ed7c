"""Daily list: occurrences and todos of one date merged into a stable order."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlmodel import Session

from recurring_planner.models import Todo
from recurring_planner.services.occurrence_service import OccurrenceView, list_occurrences_between
from recurring_planner.services.todo_service import list_todos_between

STATUS_RANK = {"pending": 0, "done": 1, "skipped": 2}


@dataclass(frozen=True)
class DailyItem:
    kind: str
    id: str
    date: datetime.date
    title: str
    status: str
    time: Optional[str]
    created_at: datetime.datetime
    completed_at: Optional[datetime.datetime]
    details: Optional[str] = None
    template_id: Optional[int] = None
    todo_id: Optional[int] = None
    overridden: bool = False
    stored: bool = True


def _occurrence_item(view: OccurrenceView) -> DailyItem:
    return DailyItem(
        kind="occurrence",
        id=f"item_occurrence_{view.template_id}_{view.occurrence_date.isoformat()}",
        date=view.occurrence_date,
        title=view.title,
        status=view.status.value,
        time=view.time,
        created_at=view.template_created_at,
        completed_at=view.completed_at,
        details=view.details,
        template_id=view.template_id,
        overridden=view.override_title is not None,
        stored=view.stored,
    )


def _todo_item(todo: Todo) -> DailyItem:
    return DailyItem(
        kind="todo",
        id=f"item_todo_{todo.id}",
        date=todo.due_date,
        title=todo.title,
        status=todo.status,
        time=todo.time,
        created_at=todo.created_at,
        completed_at=todo.completed_at,
        details=todo.details,
        todo_id=todo.id,
    )


def _sort_key(item: DailyItem):
    """Order a day: status rank, time of day, creation time, casefolded title, item id.

    Time of day is a deliberate second key, ahead of creation time, so items of
    one status read in schedule order. Items with no time sort first.
    """
    return (
        STATUS_RANK.get(item.status, len(STATUS_RANK)),
        item.time or "",
        item.created_at,
        item.title.casefold(),
        item.id,
    )


def daily_lists_between(
    db: Session,
    start: datetime.date,
    end: datetime.date,
) -> Dict[datetime.date, List[DailyItem]]:
    """Ordered daily lists for every date in ``[start, end)`` (dates without items included)."""
    lists: Dict[datetime.date, List[DailyItem]] = {}
    day = start
    while day < end:
        lists[day] = []
        day += datetime.timedelta(days=1)

    for view in list_occurrences_between(db, start, end):
        lists[view.occurrence_date].append(_occurrence_item(view))
    for todo in list_todos_between(db, start, end):
        lists[todo.due_date].append(_todo_item(todo))

    for items in lists.values():
        items.sort(key=_sort_key)
    return lists


def daily_list(db: Session, day: datetime.date) -> List[DailyItem]:
    return daily_lists_between(db, day, day + datetime.timedelta(days=1))[day]


def _get_timeline_data(db: Session, date_obj: datetime.date):
    timeline_items = daily_list(db, date_obj)
    total_items = len(timeline_items)
    completed_items = sum(1 for item in timeline_items if item.status == "done")

    completion_rate = 0
    if total_items > 0:
        completion_rate = int((completed_items / total_items) * 100)

    return timeline_items, completion_rate


__all__ = [
    "DailyItem",
    "daily_list",
    "daily_lists_between",
    "_get_timeline_data",
]
