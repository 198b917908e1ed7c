"""Backup, clear and seed helpers for the planner database."""

from __future__ import annotations

import datetime
import logging
import os
import sqlite3
import tomllib
from typing import Any, Dict, List, Mapping

from sqlalchemy import delete, func
from sqlmodel import Session, SQLModel, create_engine, select

from recurring_planner.core.clock import utcnow
from recurring_planner.core.db import _build_engine, _normalize_database_url
from recurring_planner.core.errors import PlannerError
from recurring_planner.models import Occurrence, RecurrenceTemplate, TemplateException, Todo
from recurring_planner.services.template_service import build_template
from recurring_planner.services.todo_service import build_todo

logger = logging.getLogger(__name__)

# 日本語: 外部キー順（親→子） / English: Foreign-key order, parents first
MODELS = [RecurrenceTemplate, TemplateException, Occurrence, Todo]


def default_backup_path(now: datetime.datetime | None = None) -> str:
    now = now or utcnow()
    return f"backup_{now.year}_{now.month:02d}_{now.day:02d}.db"


def _clone_row(model: type[SQLModel], row: SQLModel) -> SQLModel:
    data = {col.name: getattr(row, col.name) for col in model.__table__.columns}
    return model(**data)


def count_rows(engine) -> Dict[str, int]:
    counts = {}
    with Session(engine) as session:
        for model in MODELS:
            counts[model.__tablename__] = int(session.exec(select(func.count()).select_from(model)).one())
    return counts


def _sqlite_snapshot(source_engine, target_path: str) -> None:
    # 日本語: SQLite のオンラインバックアップで一貫したスナップショットを取る / English: SQLite online backup API gives a consistent copy of a live database
    target = sqlite3.connect(target_path)
    try:
        with source_engine.connect() as connection:
            connection.connection.driver_connection.backup(target)
    finally:
        target.close()


def _copy_rows(source_engine, target_engine) -> None:
    SQLModel.metadata.create_all(target_engine)
    snapshot_engine = source_engine.execution_options(isolation_level="REPEATABLE READ")
    with Session(snapshot_engine) as src_session, Session(target_engine) as dst_session:
        for model in MODELS:
            for row in src_session.exec(select(model)).all():
                dst_session.add(_clone_row(model, row))
            dst_session.flush()
        dst_session.commit()


def backup_database(source_url: str, target_path: str) -> Dict[str, int]:
    """Copy the store at ``source_url`` into a new SQLite file; returns row counts."""
    if os.path.exists(target_path):
        raise FileExistsError(f"Backup target already exists: {target_path}")

    normalized_url = _normalize_database_url(source_url)
    source_engine = _build_engine(normalized_url)
    target_engine = create_engine(f"sqlite:///{os.path.abspath(target_path)}")
    try:
        logger.info("Backing up %s to %s", source_engine.url.render_as_string(hide_password=True), target_path)
        if normalized_url.startswith("sqlite"):
            _sqlite_snapshot(source_engine, target_path)
        else:
            _copy_rows(source_engine, target_engine)
        counts = count_rows(target_engine)
    finally:
        source_engine.dispose()
        target_engine.dispose()

    for table, count in counts.items():
        logger.info("  Copied %s %s rows", count, table)
    return counts


def clear_database(db: Session) -> Dict[str, int]:
    """Delete every row, children first; returns deleted counts per table."""
    cleared = {}
    try:
        for model in reversed(MODELS):
            result = db.exec(delete(model))
            cleared[model.__tablename__] = result.rowcount
        db.commit()
    except Exception:
        db.rollback()
        raise
    for table, count in cleared.items():
        logger.info("Cleared %s rows from %s", count, table)
    return cleared


def load_seed_file(path: str) -> Dict[str, Any]:
    with open(path, "rb") as handle:
        return tomllib.load(handle)


def seed_from_data(db: Session, data: Mapping[str, Any]) -> List[str]:
    """Insert templates and todos from seed data in a single transaction.

    Every entry is validated before anything is written, so one bad entry leaves
    the store untouched. Templates whose title matches an active template and
    todos whose title and due date match an existing todo are skipped, which
    makes re-running the same seed file a no-op.
    """
    messages = []
    rows: List[SQLModel] = []

    existing_titles = {
        template.title
        for template in db.exec(select(RecurrenceTemplate).where(RecurrenceTemplate.retired_at.is_(None))).all()
    }
    for definition in data.get("templates", []):
        title = definition.get("title")
        try:
            template = build_template(definition)
        except PlannerError as exc:
            raise PlannerError(f"Invalid seed template {title!r}: {exc}") from exc
        # 日本語: 同名の有効テンプレートがあれば重複作成しない / English: Skip when an active template with the same title exists
        if template.title in existing_titles:
            messages.append(f"Skipped template '{template.title}' (already exists)")
            continue
        existing_titles.add(template.title)
        rows.append(template)
        messages.append(f"Seeded template '{template.title}'")

    existing_todos = {(todo.title, todo.due_date) for todo in db.exec(select(Todo)).all()}
    for entry in data.get("todos", []):
        title = entry.get("title")
        try:
            todo = build_todo(title, entry.get("due_date"), entry.get("time"), entry.get("details"))
        except PlannerError as exc:
            raise PlannerError(f"Invalid seed todo {title!r}: {exc}") from exc
        key = (todo.title, todo.due_date)
        if key in existing_todos:
            messages.append(f"Skipped todo '{todo.title}' for {todo.due_date.isoformat()} (already exists)")
            continue
        existing_todos.add(key)
        rows.append(todo)
        messages.append(f"Seeded todo '{todo.title}' for {todo.due_date.isoformat()}")

    db.add_all(rows)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Seeded %s rows", len(rows))
    return messages


__all__ = [
    "MODELS",
    "backup_database",
    "clear_database",
    "count_rows",
    "default_backup_path",
    "load_seed_file",
    "seed_from_data",
]
