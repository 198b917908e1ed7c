"""Per-date occurrence routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from recurring_planner.core.db import get_db
from recurring_planner.services.occurrence_service import set_status
from recurring_planner.web import handlers as web_handlers

# 日本語: 個別の発生日に対する操作 / English: Operations on single occurrence dates
router = APIRouter()


@router.get("/api/templates/{id}/occurrences", name="api_template_occurrences")
def api_template_occurrences(request: Request, id: int, db: Session = Depends(get_db)):
    return web_handlers.api_template_occurrences(request, id, db)


@router.get("/api/templates/{id}/occurrences/{date_str}", name="api_occurrence")
def api_occurrence(id: int, date_str: str, db: Session = Depends(get_db)):
    return web_handlers.api_occurrence(id, date_str, db)


@router.put("/api/templates/{id}/occurrences/{date_str}/status", name="set_occurrence_status")
async def set_occurrence_status(request: Request, id: int, date_str: str, db: Session = Depends(get_db)):
    # 日本語: 初回書き込み時に行を作成 (upsert) / English: Materializes the row on first write
    return await web_handlers.set_occurrence_status(request, id, date_str, db, set_status_fn=set_status)


@router.put("/api/templates/{id}/occurrences/{date_str}/title", name="edit_occurrence_title")
async def edit_occurrence_title(request: Request, id: int, date_str: str, db: Session = Depends(get_db)):
    return await web_handlers.edit_occurrence_title(request, id, date_str, db)
