"""Service-layer exports."""

from .calendar_service import DayDetail, DaySummary, day_detail, month_grid, month_summary
from .maintenance_service import backup_database, clear_database, load_seed_file, seed_from_data
from .occurrence_service import (
    OccurrenceView,
    edit_single_occurrence,
    get_occurrence,
    list_occurrences,
    list_occurrences_between,
    set_status,
    template_history,
)
from .recurrence_service import RecurrenceRule, describe, expand, next_on_or_after, occurs_on
from .template_service import (
    add_exception,
    create_template,
    edit_template,
    get_template,
    list_templates,
    remove_exception,
    retire_template,
    rule_from_template,
)
from .timeline_service import DailyItem, _get_timeline_data, daily_list
from .todo_service import create_todo, delete_todo, edit_todo, get_todo, set_todo_status

__all__ = [
    "DayDetail",
    "DaySummary",
    "day_detail",
    "month_grid",
    "month_summary",
    "backup_database",
    "clear_database",
    "load_seed_file",
    "seed_from_data",
    "OccurrenceView",
    "edit_single_occurrence",
    "get_occurrence",
    "list_occurrences",
    "list_occurrences_between",
    "set_status",
    "template_history",
    "RecurrenceRule",
    "describe",
    "expand",
    "next_on_or_after",
    "occurs_on",
    "add_exception",
    "create_template",
    "edit_template",
    "get_template",
    "list_templates",
    "remove_exception",
    "retire_template",
    "rule_from_template",
    "DailyItem",
    "_get_timeline_data",
    "daily_list",
    "create_todo",
    "delete_todo",
    "edit_todo",
    "get_todo",
    "set_todo_status",
]
