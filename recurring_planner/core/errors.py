"""Domain errors raised by the planner core."""

from __future__ import annotations

import datetime


class PlannerError(Exception):
    """Base class for every error the planner core reports to callers."""


class InvalidZone(PlannerError):
    def __init__(self, zone_name: str):
        super().__init__(f"Unknown time zone: {zone_name!r}")
        self.zone_name = zone_name


class InvalidTemplate(PlannerError):
    pass


class InvalidTodo(PlannerError):
    pass


class NotFound(PlannerError):
    def __init__(self, kind: str, identifier):
        super().__init__(f"{kind} {identifier} not found")
        self.kind = kind
        self.identifier = identifier


class NotAnOccurrence(PlannerError):
    def __init__(self, template_id: int, occurrence_date: datetime.date):
        super().__init__(
            f"Template {template_id} has no occurrence on {occurrence_date.isoformat()}"
        )
        self.template_id = template_id
        self.occurrence_date = occurrence_date


class InvalidStatus(PlannerError):
    def __init__(self, value, allowed):
        super().__init__(f"Invalid status {value!r}; expected one of {', '.join(allowed)}")
        self.value = value
