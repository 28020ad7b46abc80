"""Task API routes.

Learn: Every route depends on task_service, which requires an
authenticated principal; the service scopes every query to that
principal. A task owned by someone else is a 404, same as a missing one.

Key patterns:
- POST for creation, PATCH for partial updates
- Query params for filtering, pagination and sorting
  (GET /tasks?completed=true&limit=10&skip=20&sort_by=created_at:desc)
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tasktrack.api.deps import task_service
from tasktrack.schemas.task import (
    TaskCreate,
    TaskEnvelope,
    TaskList,
    TaskUpdate,
)
from tasktrack.services.task_service import TaskService

router = APIRouter(prefix="/tasks")


@router.post("", response_model=TaskEnvelope, status_code=201)
async def create_task(body: TaskCreate, svc: TaskService = Depends(task_service)):
    """Create a task owned by the caller."""
    return {"task": await svc.create_task(body)}


@router.get("", response_model=TaskList)
async def list_tasks(
    completed: Optional[bool] = Query(None, description="Filter by completion"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    skip: int = Query(0, ge=0),
    sort_by: Optional[str] = Query(None, description="<field>:<asc|desc>"),
    svc: TaskService = Depends(task_service),
):
    """List the caller's tasks."""
    tasks = await svc.list_tasks(completed=completed, limit=limit, skip=skip, sort=sort_by)
    return {"tasks": tasks}


@router.get("/{task_id}", response_model=TaskEnvelope)
async def get_task(task_id: uuid.UUID, svc: TaskService = Depends(task_service)):
    return {"task": await svc.get_task(task_id)}


@router.patch("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    svc: TaskService = Depends(task_service),
):
    """Partially update a task (description, completed)."""
    return {"task": await svc.update_task(task_id, body)}


@router.delete("/{task_id}", response_model=TaskEnvelope)
async def delete_task(task_id: uuid.UUID, svc: TaskService = Depends(task_service)):
    return {"task": await svc.delete_task(task_id)}
