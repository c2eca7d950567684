"""
Shared Todo Backend — Task Schemas
===================================

What:  Request bodies and response shapes for tasks.

Update semantics:
    Fields omitted from an update body are left untouched. `description`,
    `dueDate` and `assigneeId` may be sent as null to clear them; `title`,
    `status` and `priority` may not.
"""

import uuid
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from sharedtodo.models.common import TaskPriority, TaskStatus
from sharedtodo.schemas.common import CamelModel, PaginationMeta, UtcDatetime
from sharedtodo.schemas.user import UserPublic

NON_NULLABLE_UPDATE_FIELDS = ("title", "status", "priority")


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class TaskCreate(CamelModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[UtcDatetime] = None
    assignee_id: Optional[uuid.UUID] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return _strip(v)


class TaskUpdate(CamelModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[UtcDatetime] = None
    assignee_id: Optional[uuid.UUID] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return _strip(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for name in NON_NULLABLE_UPDATE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class NoteRef(CamelModel):
    id: uuid.UUID
    title: str


class TaskOut(CamelModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    due_date: Optional[UtcDatetime] = None
    note_id: uuid.UUID
    author_id: uuid.UUID
    assignee_id: Optional[uuid.UUID] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime
    author: UserPublic
    assignee: Optional[UserPublic] = None


class TaskWithNote(TaskOut):
    """Task as returned outside a note's context (detail, global list)."""

    note: NoteRef


class TaskListData(CamelModel):
    tasks: List[TaskWithNote]
    pagination: PaginationMeta


class TaskDeletedData(CamelModel):
    message: str = "Task deleted successfully"
    task_id: uuid.UUID
