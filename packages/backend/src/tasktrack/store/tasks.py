"""Task store — every query is scoped to an owner.

Learn: owner_id is a required positional argument on every read, update
and delete. There is no method that fetches a task by id alone, so a
caller can't forget the ownership filter. A task owned by someone else
simply doesn't match, and the caller gets None, exactly as for an id that
doesn't exist.

Listing applies the owner filter first, then the optional completed
filter, then sort, then skip/limit.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.db.models import Task
from tasktrack.errors import ValidationError

SORTABLE_FIELDS = {
    "created_at": Task.created_at,
    "updated_at": Task.updated_at,
    "description": Task.description,
    "completed": Task.completed,
}

UPDATABLE_COLUMNS = frozenset({"description", "completed"})


@dataclass(frozen=True)
class TaskSort:
    """Sort specification for task listings."""

    field: str = "created_at"
    descending: bool = False

    @classmethod
    def parse(cls, spec: str) -> "TaskSort":
        """Parse "<field>:<asc|desc>" (direction optional, default asc)."""
        field, _, direction = spec.partition(":")
        direction = direction or "asc"
        if field not in SORTABLE_FIELDS or direction not in ("asc", "desc"):
            raise ValidationError(
                f"Invalid sort '{spec}'. Use <field>:<asc|desc> with field in "
                f"{', '.join(sorted(SORTABLE_FIELDS))}."
            )
        return cls(field=field, descending=direction == "desc")


class TaskStore:
    """Owner-filtered CRUD for tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        owner_id: uuid.UUID,
        description: str,
        completed: bool = False,
    ) -> Task:
        task = Task(owner_id=owner_id, description=description, completed=completed)
        self.db.add(task)
        await self.db.commit()
        return task

    async def find(
        self,
        owner_id: uuid.UUID,
        completed: Optional[bool] = None,
        sort: Optional[TaskSort] = None,
        limit: Optional[int] = None,
        skip: int = 0,
    ) -> list[Task]:
        sort = sort or TaskSort()
        column = SORTABLE_FIELDS[sort.field]

        query = select(Task).where(Task.owner_id == owner_id)
        if completed is not None:
            query = query.where(Task.completed == completed)
        query = query.order_by(
            column.desc() if sort.descending else column.asc(), Task.id
        )
        if skip:
            query = query.offset(skip)
        if limit:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_one(self, owner_id: uuid.UUID, task_id: uuid.UUID) -> Optional[Task]:
        result = await self.db.execute(
            select(Task).where(Task.id == task_id, Task.owner_id == owner_id)
        )
        return result.scalars().first()

    async def update(
        self,
        owner_id: uuid.UUID,
        task_id: uuid.UUID,
        changes: dict,
    ) -> Optional[Task]:
        """Apply changes to an owned task. Returns None if there is no match."""
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValidationError(
                f"Cannot update fields: {', '.join(sorted(unknown))}"
            )

        task = await self.find_one(owner_id, task_id)
        if not task:
            return None
        for column, value in changes.items():
            setattr(task, column, value)
        await self.db.commit()
        return task

    async def delete(self, owner_id: uuid.UUID, task_id: uuid.UUID) -> Optional[Task]:
        """Delete an owned task. Returns the deleted task, or None if there is no match."""
        task = await self.find_one(owner_id, task_id)
        if not task:
            return None
        await self.db.execute(
            delete(Task).where(Task.id == task_id, Task.owner_id == owner_id)
        )
        await self.db.commit()
        return task
