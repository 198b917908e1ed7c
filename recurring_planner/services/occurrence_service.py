"""Occurrence store: computed occurrences reconciled with sparse stored rows.

Reads never write. A row is materialized the first time an occurrence is
touched, with a single ``INSERT ... ON CONFLICT DO UPDATE`` on the
(template_id, occurrence_date) key, so two concurrent first touches converge
on one row.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from sqlalchemy import case
from sqlmodel import Session, select

from recurring_planner.core.clock import utcnow
from recurring_planner.core.errors import InvalidStatus, InvalidTemplate, NotAnOccurrence
from recurring_planner.models import Occurrence, OccurrenceStatus, RecurrenceTemplate
from recurring_planner.services.recurrence_service import RecurrenceRule, expand, occurs_on
from recurring_planner.services.template_service import (
    MAX_TITLE_LENGTH,
    get_template,
    load_exceptions,
    rule_from_template,
    template_exceptions,
)

logger = logging.getLogger(__name__)

ONE_DAY = datetime.timedelta(days=1)
_FROZEN_STATUSES = {OccurrenceStatus.DONE.value, OccurrenceStatus.SKIPPED.value}


@dataclass(frozen=True)
class OccurrenceView:
    template_id: int
    occurrence_date: datetime.date
    title: str
    template_title: str
    override_title: Optional[str]
    status: OccurrenceStatus
    completed_at: Optional[datetime.datetime]
    stored: bool
    time: str
    details: Optional[str]
    template_created_at: datetime.datetime
    retired: bool


def _build_view(
    template: RecurrenceTemplate,
    day: datetime.date,
    row: Optional[Occurrence],
) -> OccurrenceView:
    override = row.override_title if row is not None else None
    return OccurrenceView(
        template_id=template.id,
        occurrence_date=day,
        title=override or template.title,
        template_title=template.title,
        override_title=override,
        status=OccurrenceStatus(row.status) if row is not None else OccurrenceStatus.PENDING,
        completed_at=row.completed_at if row is not None else None,
        stored=row is not None,
        time=template.time,
        details=template.details,
        template_created_at=template.created_at,
        retired=not template.is_active,
    )


def _row_visible(
    template: RecurrenceTemplate,
    rule: RecurrenceRule,
    exceptions: FrozenSet[datetime.date],
    row: Occurrence,
) -> bool:
    # Done/skipped rows are history and stay listed even after the rule changed.
    if row.status in _FROZEN_STATUSES:
        return True
    if not template.is_active and (template.retired_on is None or row.occurrence_date >= template.retired_on):
        return False
    return occurs_on(rule, row.occurrence_date, exceptions)


def list_occurrences_between(
    db: Session,
    start: datetime.date,
    end: datetime.date,
    template_ids: Optional[Iterable[int]] = None,
) -> List[OccurrenceView]:
    """Occurrences dated in ``[start, end)``, ordered by date then template order."""
    if end <= start:
        return []

    template_statement = select(RecurrenceTemplate)
    row_statement = select(Occurrence).where(
        Occurrence.occurrence_date >= start,
        Occurrence.occurrence_date < end,
    )
    if template_ids is not None:
        ids = list(template_ids)
        template_statement = template_statement.where(RecurrenceTemplate.id.in_(ids))
        row_statement = row_statement.where(Occurrence.template_id.in_(ids))

    templates = db.exec(template_statement).all()
    if not templates:
        return []
    exceptions_by_template = load_exceptions(db, [template.id for template in templates])

    rows_by_template: Dict[int, Dict[datetime.date, Occurrence]] = {}
    for row in db.exec(row_statement).all():
        rows_by_template.setdefault(row.template_id, {})[row.occurrence_date] = row

    views: List[OccurrenceView] = []
    for template in templates:
        rule = rule_from_template(template)
        exceptions = exceptions_by_template.get(template.id, frozenset())
        stored = rows_by_template.get(template.id, {})

        dates = set()
        # 日本語: 引退済みテンプレートは保存済みの行のみ / English: A retired template contributes stored rows only
        if template.is_active:
            dates.update(expand(rule, start, end, exceptions))
        for day, row in stored.items():
            if day not in dates and _row_visible(template, rule, exceptions, row):
                dates.add(day)

        for day in dates:
            views.append(_build_view(template, day, stored.get(day)))

    views.sort(key=lambda view: (view.occurrence_date, view.time, view.template_created_at, view.template_id))
    return views


def list_occurrences(db: Session, day: datetime.date) -> List[OccurrenceView]:
    return list_occurrences_between(db, day, day + ONE_DAY)


def _coerce_status(value: Any) -> OccurrenceStatus:
    if isinstance(value, OccurrenceStatus):
        return value
    try:
        return OccurrenceStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidStatus(value, [status.value for status in OccurrenceStatus]) from None


def _require_occurrence(db: Session, template: RecurrenceTemplate, day: datetime.date) -> None:
    if not template.is_active and (template.retired_on is None or day >= template.retired_on):
        logger.warning("Rejected change to retired template %s on %s", template.id, day)
        raise NotAnOccurrence(template.id, day)
    if not occurs_on(rule_from_template(template), day, template_exceptions(db, template.id)):
        logger.warning("Rejected change to template %s on %s: not an occurrence", template.id, day)
        raise NotAnOccurrence(template.id, day)


def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f"Unsupported database dialect for upsert: {dialect}")
    return insert


def _upsert(db: Session, values: Dict[str, Any], update_columns: Iterable[str], extra_set=None) -> None:
    table = Occurrence.__table__
    statement = _dialect_insert(db)(table).values(**values)
    set_ = {column: statement.excluded[column] for column in update_columns}
    if extra_set:
        set_.update(extra_set(table, statement))
    statement = statement.on_conflict_do_update(
        index_elements=[table.c.template_id, table.c.occurrence_date],
        set_=set_,
    )
    try:
        db.exec(statement)
        db.commit()
    except Exception:
        db.rollback()
        raise


def _load_view(db: Session, template: RecurrenceTemplate, day: datetime.date) -> OccurrenceView:
    row = db.get(Occurrence, (template.id, day), populate_existing=True)
    return _build_view(template, day, row)


def set_status(db: Session, template_id: int, day: datetime.date, status: Any) -> OccurrenceView:
    """Materialize (if needed) and set the status of one occurrence."""
    new_status = _coerce_status(status)
    template = get_template(db, template_id)
    _require_occurrence(db, template, day)

    now = utcnow()
    values = {
        "template_id": template_id,
        "occurrence_date": day,
        "status": new_status.value,
        "completed_at": now if new_status is OccurrenceStatus.DONE else None,
        "updated_at": now,
    }

    def _keep_first_completion(table, statement):
        if new_status is not OccurrenceStatus.DONE:
            return {}
        # 日本語: 既に完了済みなら最初の完了時刻を保持 / English: Re-marking done keeps the original completion time
        return {
            "completed_at": case(
                (table.c.status == OccurrenceStatus.DONE.value, table.c.completed_at),
                else_=statement.excluded.completed_at,
            )
        }

    _upsert(db, values, ("status", "completed_at", "updated_at"), _keep_first_completion)
    logger.info("Template %s on %s marked %s", template_id, day, new_status.value)
    return _load_view(db, template, day)


def edit_single_occurrence(
    db: Session,
    template_id: int,
    day: datetime.date,
    override_title: Optional[str],
) -> OccurrenceView:
    """Rename one occurrence without touching the series; empty title clears the override."""
    title = override_title.strip() if isinstance(override_title, str) else None
    title = title or None
    if title is not None and len(title) > MAX_TITLE_LENGTH:
        raise InvalidTemplate(f"title must be at most {MAX_TITLE_LENGTH} characters")

    template = get_template(db, template_id)
    _require_occurrence(db, template, day)
    values = {
        "template_id": template_id,
        "occurrence_date": day,
        "status": OccurrenceStatus.PENDING.value,
        "override_title": title,
        "completed_at": None,
        "updated_at": utcnow(),
    }
    _upsert(db, values, ("override_title", "updated_at"))
    logger.info("Template %s on %s retitled to %r", template_id, day, title)
    return _load_view(db, template, day)


def get_occurrence(db: Session, template_id: int, day: datetime.date) -> OccurrenceView:
    template = get_template(db, template_id)
    views = list_occurrences_between(db, day, day + ONE_DAY, template_ids=[template_id])
    if not views:
        raise NotAnOccurrence(template.id, day)
    return views[0]


def template_history(db: Session, template_id: int) -> List[OccurrenceView]:
    """Stored rows of one template, newest first."""
    template = get_template(db, template_id)
    rows = db.exec(
        select(Occurrence)
        .where(Occurrence.template_id == template_id)
        .order_by(Occurrence.occurrence_date.desc())
    ).all()
    return [_build_view(template, row.occurrence_date, row) for row in rows]


__all__ = [
    "OccurrenceView",
    "edit_single_occurrence",
    "get_occurrence",
    "list_occurrences",
    "list_occurrences_between",
    "set_status",
    "template_history",
]
