"""Planner domain SQLModel models."""

import datetime
import enum

from pydantic import NaiveDatetime
from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel

from recurring_planner.core.clock import utcnow


class OccurrenceStatus(str, enum.Enum):
    PENDING = "pending"
    DONE = "done"
    SKIPPED = "skipped"


class TodoStatus(str, enum.Enum):
    PENDING = "pending"
    DONE = "done"


# 日本語: 繰り返し予定の定義 / English: Recurring meeting/task definition
class RecurrenceTemplate(SQLModel, table=True):
    __tablename__ = "recurrence_template"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(max_length=200)
    details: str | None = Field(default=None, sa_column=Column(Text))
    time: str = Field(default="09:00", max_length=10)
    anchor_date: datetime.date

    # 日本語: パターン種別ごとの列。カンマ区切り整数 / English: Pattern columns, integer lists stored comma-separated
    pattern_kind: str = Field(max_length=30)
    interval: int = Field(default=1)
    weekdays: str | None = Field(default=None, max_length=20)
    month_days: str | None = Field(default=None, max_length=100)
    ordinals: str | None = Field(default=None, max_length=20)
    months: str | None = Field(default=None, max_length=40)

    until_date: datetime.date | None = Field(default=None)
    occurrence_count: int | None = Field(default=None)

    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)
    retired_at: NaiveDatetime | None = Field(default=None, sa_type=DateTime)
    retired_on: datetime.date | None = Field(default=None)

    @property
    def is_active(self) -> bool:
        return self.retired_at is None


# 日本語: テンプレートから除外する日付 / English: Date suppressed from a template's series
class TemplateException(SQLModel, table=True):
    __tablename__ = "template_exception"

    template_id: int = Field(foreign_key="recurrence_template.id", primary_key=True)
    exception_date: datetime.date = Field(primary_key=True)
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)


# 日本語: 触れた日だけ保存される発生状態 / English: Sparse per-date state, stored only once touched
class Occurrence(SQLModel, table=True):
    __tablename__ = "occurrence"

    template_id: int = Field(foreign_key="recurrence_template.id", primary_key=True)
    occurrence_date: datetime.date = Field(primary_key=True)
    status: str = Field(default=OccurrenceStatus.PENDING.value, max_length=20)
    override_title: str | None = Field(default=None, max_length=200)
    completed_at: NaiveDatetime | None = Field(default=None, sa_type=DateTime)
    updated_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)


# 日本語: 任意日に追加する単発タスク / English: One-off todo bound to a specific date
class Todo(SQLModel, table=True):
    __tablename__ = "todo"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(max_length=200)
    details: str | None = Field(default=None, sa_column=Column(Text))
    due_date: datetime.date = Field(index=True)
    time: str | None = Field(default=None, max_length=10)
    status: str = Field(default=TodoStatus.PENDING.value, max_length=20)
    created_at: NaiveDatetime = Field(default_factory=utcnow, sa_type=DateTime)
    completed_at: NaiveDatetime | None = Field(default=None, sa_type=DateTime)
