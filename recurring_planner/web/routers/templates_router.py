"""Recurrence template CRUD routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from recurring_planner.core.db import get_db
from recurring_planner.web import handlers as web_handlers

router = APIRouter()


@router.get("/api/templates", name="api_templates")
def api_templates(request: Request, db: Session = Depends(get_db)):
    return web_handlers.api_templates(request, db)


@router.post("/api/templates", name="create_template", status_code=201)
async def create_template(request: Request, db: Session = Depends(get_db)):
    return await web_handlers.create_template(request, db)


@router.get("/api/templates/{id}", name="api_template_detail")
def api_template_detail(id: int, db: Session = Depends(get_db)):
    return web_handlers.api_template_detail(id, db)


@router.patch("/api/templates/{id}", name="edit_template")
async def edit_template(request: Request, id: int, db: Session = Depends(get_db)):
    return await web_handlers.edit_template(request, id, db)


@router.post("/api/templates/{id}/retire", name="retire_template")
def retire_template(id: int, db: Session = Depends(get_db)):
    # 日本語: 削除ではなく引退 (履歴は保持) / English: Retire rather than delete so history survives
    return web_handlers.retire_template(id, db)


@router.post("/api/templates/{id}/exceptions", name="add_exception", status_code=201)
async def add_exception(request: Request, id: int, db: Session = Depends(get_db)):
    return await web_handlers.add_exception(request, id, db)


@router.delete("/api/templates/{id}/exceptions/{date_str}", name="remove_exception")
def remove_exception(id: int, date_str: str, db: Session = Depends(get_db)):
    return web_handlers.remove_exception(id, date_str, db)
