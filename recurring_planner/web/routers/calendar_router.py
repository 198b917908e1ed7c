"""Calendar API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from recurring_planner.core.db import get_db
from recurring_planner.services.calendar_service import month_grid
from recurring_planner.web import handlers as web_handlers

# 日本語: カレンダーAPI群 / English: Calendar API router
router = APIRouter()


@router.get("/api/calendar", name="api_calendar")
def api_calendar(request: Request, db: Session = Depends(get_db)):
    # 日本語: 月間グリッド集計を handler に委譲 / English: Delegate month grid aggregation to handler
    return web_handlers.api_calendar(request, db, month_grid_fn=month_grid)
