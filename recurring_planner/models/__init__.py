"""SQLModel exports for Recurring Planner."""

from .planner_models import (
    Occurrence,
    OccurrenceStatus,
    RecurrenceTemplate,
    TemplateException,
    Todo,
    TodoStatus,
)

__all__ = [
    "RecurrenceTemplate",
    "TemplateException",
    "Occurrence",
    "OccurrenceStatus",
    "Todo",
    "TodoStatus",
]
