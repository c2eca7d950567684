"""
Shared Todo Backend — Task Route Handlers
==========================================

What:  Task endpoints.

    GET    /tasks                   tasks across all visible notes
    POST   /tasks/notes/{noteId}    create on a note (owner, editor, admin)
    GET    /tasks/notes/{noteId}    tasks of one note
    GET    /tasks/{id}              detail
    PUT    /tasks/{id}              update (task author or assignee)
    DELETE /tasks/{id}              delete (task author)

Listings accept `status`, `assigneeId` and `priority` filters and page/limit;
ordering is fixed (status bucket, priority, due date, newest).
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sharedtodo.database import get_db_session
from sharedtodo.dependencies import get_current_user
from sharedtodo.models.common import TaskPriority, TaskStatus
from sharedtodo.models.user import User
from sharedtodo.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ApiResponse,
    ErrorResponse,
    build_pagination,
)
from sharedtodo.schemas.task import (
    TaskCreate,
    TaskDeletedData,
    TaskListData,
    TaskUpdate,
    TaskWithNote,
)
from sharedtodo.services.task_service import task_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tasks",
    tags=["Tasks"],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Not found or insufficient permissions", "model": ErrorResponse},
    },
)


class TaskFilters:
    """Shared query parameters of the two task listings."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
        status: Optional[TaskStatus] = Query(default=None),
        assignee_id: Optional[UUID] = Query(default=None, alias="assigneeId"),
        priority: Optional[TaskPriority] = Query(default=None),
    ):
        self.page = page
        self.limit = limit
        self.status = status.value if status else None
        self.assignee_id = assignee_id
        self.priority = priority.value if priority else None

    def as_kwargs(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "status": self.status,
            "assignee_id": self.assignee_id,
            "priority": self.priority,
        }


def _task_list(tasks, filters: TaskFilters, total: int) -> ApiResponse[TaskListData]:
    return ApiResponse[TaskListData](
        data=TaskListData(
            tasks=[TaskWithNote.model_validate(task) for task in tasks],
            pagination=build_pagination(filters.page, filters.limit, total),
        )
    )


@router.get("", response_model=ApiResponse[TaskListData], summary="Tasks across all visible notes")
async def list_tasks(
    filters: TaskFilters = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TaskListData]:
    tasks, total = await task_service.list_tasks(db, user.id, **filters.as_kwargs())
    return _task_list(tasks, filters, total)


@router.post(
    "/notes/{note_id}",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[TaskWithNote],
    responses={400: {"description": "Invalid input or assignee", "model": ErrorResponse}},
    summary="Create a task on a note",
)
async def create_task(
    note_id: UUID,
    body: TaskCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TaskWithNote]:
    task = await task_service.create_task(db, user, note_id, body)
    return ApiResponse[TaskWithNote](data=TaskWithNote.model_validate(task))


@router.get("/notes/{note_id}", response_model=ApiResponse[TaskListData], summary="Tasks of one note")
async def list_note_tasks(
    note_id: UUID,
    filters: TaskFilters = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TaskListData]:
    tasks, total = await task_service.list_note_tasks(db, user.id, note_id, **filters.as_kwargs())
    return _task_list(tasks, filters, total)


@router.get("/{task_id}", response_model=ApiResponse[TaskWithNote], summary="Get a task")
async def get_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TaskWithNote]:
    task = await task_service.get_task(db, user.id, task_id)
    return ApiResponse[TaskWithNote](data=TaskWithNote.model_validate(task))


@router.put(
    "/{task_id}",
    response_model=ApiResponse[TaskWithNote],
    responses={400: {"description": "Invalid input or assignee", "model": ErrorResponse}},
    summary="Update a task",
)
async def update_task(
    task_id: UUID,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TaskWithNote]:
    task = await task_service.update_task(db, user.id, task_id, body)
    return ApiResponse[TaskWithNote](data=TaskWithNote.model_validate(task))


@router.delete("/{task_id}", response_model=ApiResponse[TaskDeletedData], summary="Delete a task")
async def delete_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TaskDeletedData]:
    await task_service.delete_task(db, user.id, task_id)
    return ApiResponse[TaskDeletedData](data=TaskDeletedData(task_id=task_id))
