"""Router exports."""

# 日本語: 各機能ルーターを集約して application.py から一括 import 可能にする / English: Re-export feature routers for centralized app wiring
from .calendar_router import router as calendar_router
from .day_router import router as day_router
from .occurrences_router import router as occurrences_router
from .templates_router import router as templates_router
from .todos_router import router as todos_router

__all__ = [
    "calendar_router",
    "day_router",
    "templates_router",
    "occurrences_router",
    "todos_router",
]
