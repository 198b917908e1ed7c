"""Standalone todo items."""

from __future__ import annotations

import datetime
import logging
from typing import Any, List, Mapping, Optional

from sqlmodel import Session, select

from recurring_planner.core.clock import utcnow
from recurring_planner.core.errors import InvalidStatus, InvalidTodo, NotFound
from recurring_planner.models import Todo, TodoStatus
from recurring_planner.services.parsing_service import _normalize_hhmm, _parse_date

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200


def _clean_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidTodo("title is required")
    title = value.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise InvalidTodo(f"title must be at most {MAX_TITLE_LENGTH} characters")
    return title


def _clean_due_date(value: Any) -> datetime.date:
    parsed = _parse_date(value)
    if parsed is None:
        raise InvalidTodo(f"invalid due_date: {value!r}")
    return parsed


def _clean_time(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    normalized = _normalize_hhmm(value)
    if normalized is None:
        raise InvalidTodo(f"invalid time: {value!r}")
    return normalized


def _coerce_status(value: Any) -> TodoStatus:
    if isinstance(value, TodoStatus):
        return value
    if isinstance(value, bool):
        return TodoStatus.DONE if value else TodoStatus.PENDING
    try:
        return TodoStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidStatus(value, [status.value for status in TodoStatus]) from None


def _save(db: Session, todo: Todo) -> Todo:
    db.add(todo)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(todo)
    return todo


def get_todo(db: Session, todo_id: int) -> Todo:
    todo = db.get(Todo, todo_id)
    if todo is None:
        raise NotFound("Todo", todo_id)
    return todo


def build_todo(title: Any, due_date: Any, time: Any = None, details: Optional[str] = None) -> Todo:
    return Todo(
        title=_clean_title(title),
        due_date=_clean_due_date(due_date),
        time=_clean_time(time),
        details=details or None,
    )


def create_todo(
    db: Session,
    title: Any,
    due_date: Any,
    time: Any = None,
    details: Optional[str] = None,
) -> Todo:
    todo = _save(db, build_todo(title, due_date, time, details))
    logger.info("Created todo %s for %s", todo.id, todo.due_date)
    return todo


def edit_todo(db: Session, todo_id: int, patch: Mapping[str, Any]) -> Todo:
    if not isinstance(patch, Mapping):
        raise InvalidTodo("patch must be an object")
    todo = get_todo(db, todo_id)
    if "title" in patch:
        todo.title = _clean_title(patch.get("title"))
    if "details" in patch:
        todo.details = patch.get("details") or None
    if "due_date" in patch:
        todo.due_date = _clean_due_date(patch.get("due_date"))
    if "time" in patch:
        todo.time = _clean_time(patch.get("time"))
    return _save(db, todo)


def set_todo_status(db: Session, todo_id: int, status: Any) -> Todo:
    new_status = _coerce_status(status)
    todo = get_todo(db, todo_id)
    if todo.status != new_status.value:
        todo.status = new_status.value
        todo.completed_at = utcnow() if new_status is TodoStatus.DONE else None
    return _save(db, todo)


def delete_todo(db: Session, todo_id: int) -> None:
    todo = get_todo(db, todo_id)
    db.delete(todo)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted todo %s", todo_id)


def list_todos_between(db: Session, start: datetime.date, end: datetime.date) -> List[Todo]:
    return list(
        db.exec(
            select(Todo)
            .where(Todo.due_date >= start, Todo.due_date < end)
            .order_by(Todo.due_date, Todo.created_at, Todo.id)
        ).all()
    )


def list_todos(db: Session, day: datetime.date) -> List[Todo]:
    return list_todos_between(db, day, day + datetime.timedelta(days=1))


__all__ = [
    "build_todo",
    "create_todo",
    "delete_todo",
    "edit_todo",
    "get_todo",
    "list_todos",
    "list_todos_between",
    "set_todo_status",
]
