"""Task service — CRUD over the principal's own tasks.

Learn: Every method passes context.user_id to the store as the owner.
The client never supplies an owner: TaskCreate/TaskUpdate forbid the key,
and the store has no unscoped lookup. A task that belongs to someone else
comes back as None from the store and is reported as ResourceNotFoundError,
the same as an id that doesn't exist.
"""

import uuid
from collections.abc import Mapping
from typing import Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.auth.sessions import RequestContext
from tasktrack.db.models import Task
from tasktrack.errors import ResourceNotFoundError, ValidationError
from tasktrack.events.hooks import EventHook, emit
from tasktrack.events.types import TASK_CREATED, TASK_DELETED, TASK_UPDATED
from tasktrack.schemas.task import TaskCreate, TaskUpdate
from tasktrack.services.validation import update_fields, validate_input
from tasktrack.store.tasks import TaskSort, TaskStore

logger = structlog.get_logger()


class TaskService:
    """Business logic for tasks, scoped to one principal."""

    def __init__(
        self,
        db: AsyncSession,
        context: RequestContext,
        hooks: Sequence[EventHook] = (),
    ):
        self.tasks = TaskStore(db)
        self.context = context
        self.hooks = list(hooks)

    @property
    def owner_id(self) -> uuid.UUID:
        return self.context.user_id

    # ─── Create ──────────────────────────────────────────

    async def create_task(self, data: TaskCreate | Mapping) -> Task:
        data = validate_input(TaskCreate, data)
        task = await self.tasks.create(
            owner_id=self.owner_id,
            description=data.description,
            completed=data.completed,
        )
        logger.info("task.created", task_id=str(task.id))
        await emit(self.hooks, TASK_CREATED, {"task_id": str(task.id), "owner_id": str(self.owner_id)})
        return task

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(
        self,
        completed: Optional[bool] = None,
        limit: Optional[int] = None,
        skip: int = 0,
        sort: Optional[TaskSort | str] = None,
    ) -> list[Task]:
        """List the principal's tasks.

        Learn: the owner filter is applied first, then completed, then
        sort and pagination. sort may be a TaskSort or "<field>:<asc|desc>".
        """
        if isinstance(sort, str):
            sort = TaskSort.parse(sort)
        if (limit is not None and limit < 1) or skip < 0:
            raise ValidationError("limit must be positive and skip non-negative.")

        return await self.tasks.find(
            self.owner_id,
            completed=completed,
            sort=sort,
            limit=limit,
            skip=skip,
        )

    async def get_task(self, task_id: uuid.UUID) -> Task:
        task = await self.tasks.find_one(self.owner_id, task_id)
        if not task:
            raise ResourceNotFoundError("Task")
        return task

    # ─── Update ──────────────────────────────────────────

    async def update_task(self, task_id: uuid.UUID, updates: TaskUpdate | Mapping) -> Task:
        """Update description and/or completed. Anything else is rejected up front."""
        changes = update_fields(TaskUpdate, updates)

        task = await self.tasks.update(self.owner_id, task_id, changes)
        if not task:
            raise ResourceNotFoundError("Task")

        await emit(self.hooks, TASK_UPDATED, {"task_id": str(task.id), "fields": sorted(changes)})
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, task_id: uuid.UUID) -> Task:
        task = await self.tasks.delete(self.owner_id, task_id)
        if not task:
            raise ResourceNotFoundError("Task")

        logger.info("task.deleted", task_id=str(task_id))
        await emit(self.hooks, TASK_DELETED, {"task_id": str(task_id)})
        return task
