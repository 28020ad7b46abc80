"""Pydantic schemas for tasks.

Learn: Separate schemas for create/update/read keeps the API clean.
- TaskCreate: what you POST to create a task (owner comes from the token)
- TaskUpdate: what you PATCH to modify a task (all optional)
- TaskRead: what the API returns

Create and update forbid extra keys, so a body carrying id, _id or
owner_id is rejected before anything touches the database.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    description: str = Field(..., min_length=1)
    completed: bool = False


class TaskUpdate(BaseModel):
    """Partial update — only fields that are present are applied."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    description: Optional[str] = Field(None, min_length=1)
    completed: Optional[bool] = None


class TaskRead(BaseModel):
    id: uuid.UUID
    description: str
    completed: bool
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskEnvelope(BaseModel):
    task: TaskRead


class TaskList(BaseModel):
    tasks: list[TaskRead]
