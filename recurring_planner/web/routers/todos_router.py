"""Todo CRUD routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from recurring_planner.core.db import get_db
from recurring_planner.web import handlers as web_handlers

router = APIRouter()


@router.post("/api/todos", name="create_todo", status_code=201)
async def create_todo(request: Request, db: Session = Depends(get_db)):
    return await web_handlers.create_todo(request, db)


@router.patch("/api/todos/{id}", name="edit_todo")
async def edit_todo(request: Request, id: int, db: Session = Depends(get_db)):
    return await web_handlers.edit_todo(request, id, db)


@router.put("/api/todos/{id}/status", name="set_todo_status")
async def set_todo_status(request: Request, id: int, db: Session = Depends(get_db)):
    return await web_handlers.set_todo_status(request, id, db)


@router.delete("/api/todos/{id}", name="delete_todo")
def delete_todo(id: int, db: Session = Depends(get_db)):
    return web_handlers.delete_todo(id, db)
