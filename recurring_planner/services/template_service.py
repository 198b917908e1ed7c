"""Recurrence template management: validation, edits, exceptions and retirement."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from recurring_planner.core.clock import today, utcnow
from recurring_planner.core.errors import InvalidTemplate, NotAnOccurrence, NotFound
from recurring_planner.models import RecurrenceTemplate, TemplateException
from recurring_planner.services.parsing_service import (
    _join_ints,
    _normalize_hhmm,
    _parse_date,
    _parse_int,
    _parse_int_list,
    _parse_ordinals,
    _parse_weekdays,
    _split_ints,
)
from recurring_planner.services.recurrence_service import (
    LAST,
    PATTERN_KINDS,
    CertainMonths,
    EveryNDays,
    MonthlyByDay,
    MonthlyByWeekday,
    Once,
    Pattern,
    RecurrenceRule,
    Weekly,
    anchored,
    occurs_on,
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_INTERVAL = 3660
MAX_WEEK_INTERVAL = 520
MAX_OCCURRENCE_COUNT = 10000
DEFAULT_TIME = "09:00"

_VALID_ORDINALS = {1, 2, 3, 4, 5, LAST}


def _require_members(values: Optional[List[int]], allowed: Iterable[int], label: str) -> FrozenSet[int]:
    if not values:
        raise InvalidTemplate(f"{label} must not be empty")
    allowed_set = set(allowed)
    invalid = [value for value in values if value not in allowed_set]
    if invalid:
        raise InvalidTemplate(f"invalid {label}: {invalid}")
    return frozenset(values)


def _require_interval(value: Any, upper: int) -> int:
    if value is None:
        return 1
    interval = _parse_int(value)
    if interval is None or not 1 <= interval <= upper:
        raise InvalidTemplate(f"interval must be between 1 and {upper}")
    return interval


def pattern_from_payload(payload: Any) -> Pattern:
    """Build a pattern from its JSON/TOML form, e.g. ``{"kind": "weekly", "weekdays": ["mon", "fri"]}``."""
    if not isinstance(payload, Mapping):
        raise InvalidTemplate("pattern must be an object")
    kind = payload.get("kind")
    if kind not in PATTERN_KINDS:
        raise InvalidTemplate(f"unknown pattern kind: {kind!r}")

    if kind == EveryNDays.kind:
        return EveryNDays(interval=_require_interval(payload.get("interval"), MAX_INTERVAL))
    if kind == Weekly.kind:
        return Weekly(
            weekdays=_require_members(_parse_weekdays(payload.get("weekdays")), range(7), "weekdays"),
            interval=_require_interval(payload.get("interval"), MAX_WEEK_INTERVAL),
        )
    if kind == MonthlyByDay.kind:
        return MonthlyByDay(days=_require_members(_parse_int_list(payload.get("days")), range(1, 32), "days"))
    if kind == MonthlyByWeekday.kind:
        return MonthlyByWeekday(
            ordinals=_require_members(_parse_ordinals(payload.get("ordinals")), _VALID_ORDINALS, "ordinals"),
            weekdays=_require_members(_parse_weekdays(payload.get("weekdays")), range(7), "weekdays"),
        )
    if kind == CertainMonths.kind:
        return CertainMonths(
            months=_require_members(_parse_int_list(payload.get("months")), range(1, 13), "months"),
            days=_require_members(_parse_int_list(payload.get("days")), range(1, 32), "days"),
        )
    return Once()


def pattern_to_payload(pattern: Pattern) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"kind": pattern.kind}
    if isinstance(pattern, EveryNDays):
        payload["interval"] = pattern.interval
    elif isinstance(pattern, Weekly):
        payload["weekdays"] = sorted(pattern.weekdays)
        payload["interval"] = pattern.interval
    elif isinstance(pattern, MonthlyByDay):
        payload["days"] = sorted(pattern.days)
    elif isinstance(pattern, MonthlyByWeekday):
        payload["ordinals"] = sorted(pattern.ordinals)
        payload["weekdays"] = sorted(pattern.weekdays)
    elif isinstance(pattern, CertainMonths):
        payload["months"] = sorted(pattern.months)
        payload["days"] = sorted(pattern.days)
    return payload


def _pattern_columns(pattern: Pattern) -> Dict[str, Any]:
    columns: Dict[str, Any] = {
        "pattern_kind": pattern.kind,
        "interval": 1,
        "weekdays": None,
        "month_days": None,
        "ordinals": None,
        "months": None,
    }
    if isinstance(pattern, (EveryNDays, Weekly)):
        columns["interval"] = pattern.interval
    if isinstance(pattern, (Weekly, MonthlyByWeekday)):
        columns["weekdays"] = _join_ints(pattern.weekdays)
    if isinstance(pattern, (MonthlyByDay, CertainMonths)):
        columns["month_days"] = _join_ints(pattern.days)
    if isinstance(pattern, MonthlyByWeekday):
        columns["ordinals"] = _join_ints(pattern.ordinals)
    if isinstance(pattern, CertainMonths):
        columns["months"] = _join_ints(pattern.months)
    return columns


def pattern_from_template(template: RecurrenceTemplate) -> Pattern:
    kind = template.pattern_kind
    if kind == EveryNDays.kind:
        return EveryNDays(interval=template.interval)
    if kind == Weekly.kind:
        return Weekly(weekdays=frozenset(_split_ints(template.weekdays)), interval=template.interval)
    if kind == MonthlyByDay.kind:
        return MonthlyByDay(days=frozenset(_split_ints(template.month_days)))
    if kind == MonthlyByWeekday.kind:
        return MonthlyByWeekday(
            ordinals=frozenset(_split_ints(template.ordinals)),
            weekdays=frozenset(_split_ints(template.weekdays)),
        )
    if kind == CertainMonths.kind:
        return CertainMonths(
            months=frozenset(_split_ints(template.months)),
            days=frozenset(_split_ints(template.month_days)),
        )
    if kind == Once.kind:
        return Once()
    raise InvalidTemplate(f"stored template {template.id} has unknown pattern kind {kind!r}")


def rule_from_template(template: RecurrenceTemplate) -> RecurrenceRule:
    return RecurrenceRule(
        anchor=template.anchor_date,
        pattern=pattern_from_template(template),
        until=template.until_date,
        count=template.occurrence_count,
    )


def _clean_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidTemplate("title is required")
    title = value.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise InvalidTemplate(f"title must be at most {MAX_TITLE_LENGTH} characters")
    return title


def _clean_optional_date(value: Any, label: str) -> Optional[datetime.date]:
    if value is None or value == "":
        return None
    parsed = _parse_date(value)
    if parsed is None:
        raise InvalidTemplate(f"invalid {label}: {value!r}")
    return parsed


def _clean_count(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    count = _parse_int(value)
    if count is None or not 1 <= count <= MAX_OCCURRENCE_COUNT:
        raise InvalidTemplate(f"count must be between 1 and {MAX_OCCURRENCE_COUNT}")
    return count


def _clean_time(value: Any) -> str:
    if value is None or value == "":
        return DEFAULT_TIME
    normalized = _normalize_hhmm(value)
    if normalized is None:
        raise InvalidTemplate(f"invalid time: {value!r}")
    return normalized


def _validated_rule(
    anchor: Optional[datetime.date],
    pattern: Pattern,
    until: Optional[datetime.date],
    count: Optional[int],
) -> RecurrenceRule:
    if anchor is None:
        raise InvalidTemplate("anchor_date is required")
    if until is not None and until < anchor:
        raise InvalidTemplate("until must not be earlier than anchor_date")
    rule = anchored(RecurrenceRule(anchor=anchor, pattern=pattern, until=until, count=count))
    if rule is None:
        raise InvalidTemplate("pattern produces no dates within the series bounds")
    return rule


def _apply_rule(template: RecurrenceTemplate, rule: RecurrenceRule) -> None:
    template.anchor_date = rule.anchor
    template.until_date = rule.until
    template.occurrence_count = rule.count
    for column, value in _pattern_columns(rule.pattern).items():
        setattr(template, column, value)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise


def get_template(db: Session, template_id: int) -> RecurrenceTemplate:
    template = db.get(RecurrenceTemplate, template_id)
    if template is None:
        raise NotFound("Template", template_id)
    return template


def list_templates(db: Session, include_retired: bool = False) -> List[RecurrenceTemplate]:
    statement = select(RecurrenceTemplate)
    if not include_retired:
        statement = statement.where(RecurrenceTemplate.retired_at.is_(None))
    return list(db.exec(statement.order_by(RecurrenceTemplate.created_at, RecurrenceTemplate.id)).all())


def load_exceptions(db: Session, template_ids: Iterable[int]) -> Dict[int, FrozenSet[datetime.date]]:
    ids = list(template_ids)
    grouped: Dict[int, set] = {template_id: set() for template_id in ids}
    if not ids:
        return {}
    rows = db.exec(select(TemplateException).where(TemplateException.template_id.in_(ids))).all()
    for row in rows:
        grouped[row.template_id].add(row.exception_date)
    return {template_id: frozenset(dates) for template_id, dates in grouped.items()}


def template_exceptions(db: Session, template_id: int) -> FrozenSet[datetime.date]:
    return load_exceptions(db, [template_id]).get(template_id, frozenset())


def build_template(definition: Mapping[str, Any]) -> RecurrenceTemplate:
    """Validate ``definition`` into an unsaved template row."""
    if not isinstance(definition, Mapping):
        raise InvalidTemplate("definition must be an object")
    title = _clean_title(definition.get("title"))
    anchor = _clean_optional_date(definition.get("anchor_date", definition.get("anchor")), "anchor_date")
    rule = _validated_rule(
        anchor,
        pattern_from_payload(definition.get("pattern")),
        _clean_optional_date(definition.get("until"), "until"),
        _clean_count(definition.get("count")),
    )

    template = RecurrenceTemplate(
        title=title,
        details=definition.get("details") or None,
        time=_clean_time(definition.get("time")),
        anchor_date=rule.anchor,
        pattern_kind=rule.pattern.kind,
    )
    _apply_rule(template, rule)
    return template


def create_template(db: Session, definition: Mapping[str, Any]) -> RecurrenceTemplate:
    template = build_template(definition)
    db.add(template)
    _commit(db)
    db.refresh(template)
    logger.info("Created template %s (%s)", template.id, template.title)
    return template


def edit_template(db: Session, template_id: int, patch: Mapping[str, Any]) -> RecurrenceTemplate:
    """Apply a partial update; omitted keys keep their value, explicit null clears until/count."""
    if not isinstance(patch, Mapping):
        raise InvalidTemplate("patch must be an object")
    template = get_template(db, template_id)
    current = rule_from_template(template)

    if "title" in patch:
        template.title = _clean_title(patch.get("title"))
    if "details" in patch:
        template.details = patch.get("details") or None
    if "time" in patch:
        template.time = _clean_time(patch.get("time"))

    anchor = current.anchor
    if "anchor_date" in patch or "anchor" in patch:
        anchor = _clean_optional_date(patch.get("anchor_date", patch.get("anchor")), "anchor_date")
    pattern = pattern_from_payload(patch["pattern"]) if "pattern" in patch else current.pattern
    until = _clean_optional_date(patch.get("until"), "until") if "until" in patch else current.until
    count = _clean_count(patch.get("count")) if "count" in patch else current.count

    rule = _validated_rule(anchor, pattern, until, count)
    if rule != current:
        # 日本語: 保存済みの発生行は書き換えない / English: Stored occurrence rows are left as they are
        _apply_rule(template, rule)
        logger.info("Template %s rule changed to %s", template.id, rule)
    template.updated_at = utcnow()
    db.add(template)
    _commit(db)
    db.refresh(template)
    return template


def retire_template(db: Session, template_id: int, zone: Optional[ZoneInfo] = None) -> RecurrenceTemplate:
    template = get_template(db, template_id)
    if template.retired_at is not None:
        return template
    template.retired_at = utcnow()
    template.retired_on = today(zone)
    db.add(template)
    _commit(db)
    db.refresh(template)
    logger.info("Retired template %s as of %s", template.id, template.retired_on)
    return template


def add_exception(db: Session, template_id: int, day: datetime.date) -> FrozenSet[datetime.date]:
    template = get_template(db, template_id)
    if not occurs_on(rule_from_template(template), day):
        logger.warning("Rejected exception for template %s on %s", template_id, day)
        raise NotAnOccurrence(template_id, day)
    if db.get(TemplateException, (template_id, day)) is None:
        db.add(TemplateException(template_id=template_id, exception_date=day))
        try:
            _commit(db)
        except IntegrityError:
            # 日本語: 同時追加済みなら結果は同じ / English: A concurrent insert already recorded the same exception
            logger.info("Exception for template %s on %s already recorded", template_id, day)
    return template_exceptions(db, template_id)


def remove_exception(db: Session, template_id: int, day: datetime.date) -> FrozenSet[datetime.date]:
    get_template(db, template_id)
    row = db.get(TemplateException, (template_id, day))
    if row is None:
        raise NotFound("Exception", f"{template_id}/{day.isoformat()}")
    db.delete(row)
    _commit(db)
    return template_exceptions(db, template_id)


__all__ = [
    "add_exception",
    "build_template",
    "create_template",
    "edit_template",
    "get_template",
    "list_templates",
    "load_exceptions",
    "pattern_from_payload",
    "pattern_from_template",
    "pattern_to_payload",
    "remove_exception",
    "retire_template",
    "rule_from_template",
    "template_exceptions",
]
