"""Core package exports."""

from .clock import day_bounds, get_timezone, init_timezone, resolve_zone, today, utcnow
from .config import (
    BASE_DIR,
    DATABASE_URL,
    PROXY_PREFIX,
    get_max_expand_days,
    get_timezone_name,
)
from .db import Session, create_session, engine, get_db
from .errors import (
    InvalidStatus,
    InvalidTemplate,
    InvalidTodo,
    InvalidZone,
    NotAnOccurrence,
    NotFound,
    PlannerError,
)

__all__ = [
    "BASE_DIR",
    "DATABASE_URL",
    "PROXY_PREFIX",
    "get_max_expand_days",
    "get_timezone_name",
    "day_bounds",
    "get_timezone",
    "init_timezone",
    "resolve_zone",
    "today",
    "utcnow",
    "engine",
    "Session",
    "create_session",
    "get_db",
    "PlannerError",
    "InvalidZone",
    "InvalidTemplate",
    "InvalidTodo",
    "InvalidStatus",
    "NotAnOccurrence",
    "NotFound",
]
