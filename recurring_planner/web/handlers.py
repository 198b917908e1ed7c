"""HTTP handler implementations used by the routers."""

from __future__ import annotations

import datetime
from contextlib import contextmanager
from typing import Any, Dict, FrozenSet, Iterator, Optional

from fastapi import HTTPException, Request
from sqlmodel import Session

from recurring_planner.core.clock import get_timezone, today
from recurring_planner.core.config import get_max_expand_days
from recurring_planner.core.errors import (
    InvalidStatus,
    InvalidTemplate,
    InvalidTodo,
    NotAnOccurrence,
    NotFound,
)
from recurring_planner.models import RecurrenceTemplate, Todo
from recurring_planner.services import occurrence_service, template_service, todo_service
from recurring_planner.services.occurrence_service import OccurrenceView
from recurring_planner.services.parsing_service import _bool_from_value, parse_iso_date
from recurring_planner.services.recurrence_service import describe, next_on_or_after
from recurring_planner.services.timeline_service import DailyItem


@contextmanager
def _translate_errors() -> Iterator[None]:
    # 日本語: ドメイン例外を HTTP ステータスへ変換 / English: Map domain errors onto HTTP status codes
    try:
        yield
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except NotAnOccurrence as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except (InvalidTemplate, InvalidTodo, InvalidStatus) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _parse_date_param(date_str: str) -> datetime.date:
    try:
        return parse_iso_date(date_str)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format")


async def _read_json_object(request: Request) -> Dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="payload must be an object")
    return payload


def _isoformat(value: Optional[datetime.date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_item(item: DailyItem) -> Dict[str, Any]:
    return {
        "kind": item.kind,
        "id": item.id,
        "date": item.date.isoformat(),
        "title": item.title,
        "status": item.status,
        "is_done": item.status == "done",
        "time": item.time,
        "details": item.details,
        "template_id": item.template_id,
        "todo_id": item.todo_id,
        "overridden": item.overridden,
        "completed_at": _isoformat(item.completed_at),
    }


def serialize_occurrence(view: OccurrenceView) -> Dict[str, Any]:
    return {
        "template_id": view.template_id,
        "date": view.occurrence_date.isoformat(),
        "title": view.title,
        "override_title": view.override_title,
        "status": view.status.value,
        "completed_at": _isoformat(view.completed_at),
        "stored": view.stored,
        "time": view.time,
    }


def serialize_template(
    template: RecurrenceTemplate,
    exceptions: FrozenSet[datetime.date],
    current_date: datetime.date,
) -> Dict[str, Any]:
    rule = template_service.rule_from_template(template)
    next_date = next_on_or_after(rule, current_date, exceptions) if template.is_active else None
    return {
        "id": template.id,
        "title": template.title,
        "details": template.details,
        "time": template.time,
        "anchor_date": template.anchor_date.isoformat(),
        "pattern": template_service.pattern_to_payload(rule.pattern),
        "until": _isoformat(template.until_date),
        "count": template.occurrence_count,
        "description": describe(rule),
        "exceptions": sorted(day.isoformat() for day in exceptions),
        "active": template.is_active,
        "retired_on": _isoformat(template.retired_on),
        "next_occurrence": _isoformat(next_date),
        "created_at": template.created_at.isoformat(),
    }


def serialize_todo(todo: Todo) -> Dict[str, Any]:
    return {
        "id": todo.id,
        "title": todo.title,
        "details": todo.details,
        "due_date": todo.due_date.isoformat(),
        "time": todo.time,
        "status": todo.status,
        "created_at": todo.created_at.isoformat(),
        "completed_at": _isoformat(todo.completed_at),
    }


def api_calendar(request: Request, db: Session, *, month_grid_fn):
    current_date = today(get_timezone())
    try:
        year = int(request.query_params.get("year", current_date.year))
        month = int(request.query_params.get("month", current_date.month))
    except ValueError:
        raise HTTPException(status_code=400, detail="year and month must be integers")

    try:
        payload = month_grid_fn(db, year, month, today=current_date)
    except (ValueError, OverflowError):
        # 日本語: 1〜9999 年の範囲外 / English: Grid falls outside years 1-9999
        raise HTTPException(status_code=400, detail="year and month are out of range")
    payload["today"] = current_date.isoformat()
    return payload


def _day_payload(date_obj: datetime.date, timeline_items, completion_rate: int) -> Dict[str, Any]:
    return {
        "date": date_obj.isoformat(),
        "weekday": date_obj.weekday(),
        "day_name": date_obj.strftime("%A"),
        "date_display": date_obj.strftime("%Y.%m.%d"),
        "timeline_items": [serialize_item(item) for item in timeline_items],
        "completion_rate": completion_rate,
    }


def api_day_view(date_str: str, db: Session, *, get_timeline_data_fn):
    date_obj = _parse_date_param(date_str)
    timeline_items, completion_rate = get_timeline_data_fn(db, date_obj)
    return _day_payload(date_obj, timeline_items, completion_rate)


def api_today(db: Session, *, get_timeline_data_fn):
    date_obj = today(get_timezone())
    timeline_items, completion_rate = get_timeline_data_fn(db, date_obj)
    return _day_payload(date_obj, timeline_items, completion_rate)


def api_templates(request: Request, db: Session):
    include_retired = _bool_from_value(request.query_params.get("include_retired"), False)
    templates = template_service.list_templates(db, include_retired=include_retired)
    exceptions = template_service.load_exceptions(db, [template.id for template in templates])
    current_date = today(get_timezone())
    return {
        "templates": [
            serialize_template(template, exceptions.get(template.id, frozenset()), current_date)
            for template in templates
        ]
    }


def api_template_detail(id: int, db: Session):
    with _translate_errors():
        template = template_service.get_template(db, id)
        history = occurrence_service.template_history(db, id)
    exceptions = template_service.template_exceptions(db, id)
    payload = serialize_template(template, exceptions, today(get_timezone()))
    payload["history"] = [serialize_occurrence(view) for view in history]
    return payload


async def create_template(request: Request, db: Session):
    definition = await _read_json_object(request)
    with _translate_errors():
        template = template_service.create_template(db, definition)
    return serialize_template(template, frozenset(), today(get_timezone()))


async def edit_template(request: Request, id: int, db: Session):
    patch = await _read_json_object(request)
    with _translate_errors():
        template = template_service.edit_template(db, id, patch)
    exceptions = template_service.template_exceptions(db, id)
    return serialize_template(template, exceptions, today(get_timezone()))


def retire_template(id: int, db: Session):
    zone = get_timezone()
    with _translate_errors():
        template = template_service.retire_template(db, id, zone)
    exceptions = template_service.template_exceptions(db, id)
    return serialize_template(template, exceptions, today(zone))


def api_template_occurrences(request: Request, id: int, db: Session):
    current_date = today(get_timezone())
    start_param = request.query_params.get("start")
    end_param = request.query_params.get("end")
    start = _parse_date_param(start_param) if start_param else current_date
    try:
        end = _parse_date_param(end_param) if end_param else start + datetime.timedelta(days=31)
    except OverflowError:
        raise HTTPException(status_code=400, detail="window is out of range")
    if end < start:
        raise HTTPException(status_code=400, detail="end cannot be before start")
    max_days = get_max_expand_days()
    if (end - start).days > max_days:
        raise HTTPException(status_code=400, detail=f"window must be at most {max_days} days")

    with _translate_errors():
        template_service.get_template(db, id)
    views = occurrence_service.list_occurrences_between(db, start, end, template_ids=[id])
    return {
        "template_id": id,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "occurrences": [serialize_occurrence(view) for view in views],
    }


async def add_exception(request: Request, id: int, db: Session):
    payload = await _read_json_object(request)
    date_value = payload.get("date")
    if not isinstance(date_value, str):
        raise HTTPException(status_code=400, detail="date is required")
    day = _parse_date_param(date_value)
    with _translate_errors():
        exceptions = template_service.add_exception(db, id, day)
    return {"template_id": id, "exceptions": sorted(item.isoformat() for item in exceptions)}


def remove_exception(id: int, date_str: str, db: Session):
    day = _parse_date_param(date_str)
    with _translate_errors():
        exceptions = template_service.remove_exception(db, id, day)
    return {"template_id": id, "exceptions": sorted(item.isoformat() for item in exceptions)}


def api_occurrence(id: int, date_str: str, db: Session):
    day = _parse_date_param(date_str)
    with _translate_errors():
        view = occurrence_service.get_occurrence(db, id, day)
    return serialize_occurrence(view)


async def set_occurrence_status(request: Request, id: int, date_str: str, db: Session, *, set_status_fn):
    day = _parse_date_param(date_str)
    payload = await _read_json_object(request)
    if "status" not in payload:
        raise HTTPException(status_code=400, detail="status is required")
    with _translate_errors():
        view = set_status_fn(db, id, day, payload["status"])
    return serialize_occurrence(view)


async def edit_occurrence_title(request: Request, id: int, date_str: str, db: Session):
    day = _parse_date_param(date_str)
    payload = await _read_json_object(request)
    title = payload.get("title")
    if title is not None and not isinstance(title, str):
        raise HTTPException(status_code=400, detail="title must be a string")
    with _translate_errors():
        view = occurrence_service.edit_single_occurrence(db, id, day, title)
    return serialize_occurrence(view)


async def create_todo(request: Request, db: Session):
    payload = await _read_json_object(request)
    with _translate_errors():
        todo = todo_service.create_todo(
            db,
            payload.get("title"),
            payload.get("due_date"),
            payload.get("time"),
            payload.get("details"),
        )
    return serialize_todo(todo)


async def edit_todo(request: Request, id: int, db: Session):
    patch = await _read_json_object(request)
    with _translate_errors():
        todo = todo_service.edit_todo(db, id, patch)
    return serialize_todo(todo)


async def set_todo_status(request: Request, id: int, db: Session):
    payload = await _read_json_object(request)
    if "status" not in payload:
        raise HTTPException(status_code=400, detail="status is required")
    with _translate_errors():
        todo = todo_service.set_todo_status(db, id, payload["status"])
    return serialize_todo(todo)


def delete_todo(id: int, db: Session):
    with _translate_errors():
        todo_service.delete_todo(db, id)
    return {"status": "deleted", "id": id}
