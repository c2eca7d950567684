"""
Shared Todo Backend — Task Service
===================================

What:  CRUD for tasks plus per-note and cross-note listings.

Permissions:
    create   edit rights on the parent note (owner, editor, admin)
    read     parent note visible
    update   parent note visible AND caller is the task author or assignee
    delete   parent note visible AND caller is the task author
    Anything else is reported as TASK_NOT_FOUND / NOTE_NOT_FOUND.

Assignees must be the note owner or one of its collaborators
(INVALID_ASSIGNEE otherwise).

Ordering (fixed, see models.task.task_ordering):
    status bucket → priority desc → due date asc (undated last) → newest
"""

import logging
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sharedtodo.exceptions import BadRequestError, NotFoundError
from sharedtodo.models.common import utcnow
from sharedtodo.models.note import Note
from sharedtodo.models.task import Task, task_ordering
from sharedtodo.models.user import User
from sharedtodo.policy import (
    NoteAction,
    can_delete_task,
    can_edit_task,
    is_note_member,
    task_visibility_clause,
)
from sharedtodo.schemas.common import page_offset
from sharedtodo.schemas.task import TaskCreate, TaskUpdate
from sharedtodo.services.note_service import get_accessible_note

logger = logging.getLogger(__name__)


def task_load_options():
    return (
        selectinload(Task.author),
        selectinload(Task.assignee),
        selectinload(Task.note),
    )


def task_not_found(task_id: UUID) -> NotFoundError:
    return NotFoundError(
        resource="task",
        resource_id=str(task_id),
        message="Task not found or insufficient permissions",
        code="TASK_NOT_FOUND",
    )


def _ensure_assignee(note: Note, assignee_id: Optional[UUID]) -> None:
    if assignee_id is not None and not is_note_member(note, assignee_id):
        raise BadRequestError("Assignee must have access to the note", code="INVALID_ASSIGNEE")


def _apply_filters(stmt, status: Optional[str], assignee_id: Optional[UUID], priority: Optional[str]):
    if status:
        stmt = stmt.where(Task.status == status)
    if assignee_id:
        stmt = stmt.where(Task.assignee_id == assignee_id)
    if priority:
        stmt = stmt.where(Task.priority == priority)
    return stmt


class TaskService:

    async def create_task(
        self,
        db: AsyncSession,
        user: User,
        note_id: UUID,
        data: TaskCreate,
    ) -> Task:
        note = await get_accessible_note(db, note_id, user.id, NoteAction.EDIT)
        _ensure_assignee(note, data.assignee_id)

        task = Task(
            title=data.title,
            description=data.description,
            status=data.status,
            priority=data.priority,
            due_date=data.due_date,
            note_id=note.id,
            author_id=user.id,
            assignee_id=data.assignee_id,
        )
        db.add(task)
        await db.flush()

        logger.info("Task created: %s on note %s by %s", task.id, note.id, user.id)
        return await self.get_task(db, user.id, task.id, refresh=True)

    async def list_note_tasks(
        self,
        db: AsyncSession,
        user_id: UUID,
        note_id: UUID,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        assignee_id: Optional[UUID] = None,
        priority: Optional[str] = None,
    ) -> Tuple[List[Task], int]:
        await get_accessible_note(db, note_id, user_id)
        base = _apply_filters(select(Task).where(Task.note_id == note_id), status, assignee_id, priority)
        return await self._page(db, base, page, limit)

    async def list_tasks(
        self,
        db: AsyncSession,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        assignee_id: Optional[UUID] = None,
        priority: Optional[str] = None,
    ) -> Tuple[List[Task], int]:
        """Tasks across every note the user can see."""
        base = _apply_filters(
            select(Task).where(task_visibility_clause(user_id)), status, assignee_id, priority
        )
        return await self._page(db, base, page, limit)

    async def get_task(
        self,
        db: AsyncSession,
        user_id: UUID,
        task_id: UUID,
        refresh: bool = False,
    ) -> Task:
        stmt = (
            select(Task)
            .where(Task.id == task_id, task_visibility_clause(user_id))
            .options(*task_load_options())
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        task = (await db.execute(stmt)).scalar_one_or_none()
        if task is None:
            raise task_not_found(task_id)
        return task

    async def update_task(
        self,
        db: AsyncSession,
        user_id: UUID,
        task_id: UUID,
        data: TaskUpdate,
    ) -> Task:
        task = await self.get_task(db, user_id, task_id)
        if not can_edit_task(user_id, task):
            raise task_not_found(task_id)

        changes = data.changes()
        if changes.get("assignee_id") is not None:
            note = await get_accessible_note(db, task.note_id, user_id, refresh=True)
            _ensure_assignee(note, changes["assignee_id"])

        for field, value in changes.items():
            setattr(task, field, value)
        task.updated_at = utcnow()
        await db.flush()

        logger.info("Task updated: %s by %s (%s)", task.id, user_id, ", ".join(sorted(changes)))
        return await self.get_task(db, user_id, task_id, refresh=True)

    async def delete_task(self, db: AsyncSession, user_id: UUID, task_id: UUID) -> None:
        task = await self.get_task(db, user_id, task_id)
        if not can_delete_task(user_id, task):
            raise task_not_found(task_id)
        await db.delete(task)
        await db.flush()
        logger.info("Task deleted: %s by %s", task_id, user_id)

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    async def _page(db: AsyncSession, base, page: int, limit: int) -> Tuple[List[Task], int]:
        total = (
            await db.execute(select(func.count()).select_from(base.subquery()))
        ).scalar_one()
        rows: Sequence[Task] = (
            await db.execute(
                base.options(*task_load_options())
                .order_by(*task_ordering())
                .offset(page_offset(page, limit))
                .limit(limit)
            )
        ).scalars().all()
        return list(rows), total


task_service = TaskService()
