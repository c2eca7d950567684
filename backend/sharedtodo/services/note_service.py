"""
Shared Todo Backend — Note Service
===================================

What:  Create, list, read, update and delete notes.
How:   Every fetch carries the access predicate from `sharedtodo.policy` in
       its WHERE clause, so a note the caller may not see (or may not act
       on) comes back as None and is reported as NOTE_NOT_FOUND. Nothing
       distinguishes "missing" from "forbidden".
Who:   Called by the /notes route handlers; `get_accessible_note` is shared
       with CollaboratorService and TaskService.

Query plan (listing):
    SELECT notes.*, (SELECT count(*) FROM tasks WHERE note_id = notes.id)
    FROM notes
    WHERE (author_id = :me OR EXISTS (collaborator row for :me))
      AND is_archived = :archived
    ORDER BY updated_at DESC, created_at DESC
    LIMIT :limit OFFSET :offset
    → idx_notes_updated_at serves the ordering
"""

import logging
from typing import List, Sequence, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sharedtodo.exceptions import NotFoundError
from sharedtodo.models.collaborator import NoteCollaborator
from sharedtodo.models.common import utcnow
from sharedtodo.models.note import Note
from sharedtodo.models.task import Task, task_ordering
from sharedtodo.models.user import User
from sharedtodo.policy import NoteAction, note_access_clause, role_of
from sharedtodo.schemas.common import page_offset
from sharedtodo.schemas.note import NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)

NOTE_NOT_FOUND_MESSAGE = "Note not found or insufficient permissions"


def note_load_options():
    """Eager loads required by NoteSummary (async sessions cannot lazy-load)."""
    return (
        selectinload(Note.author),
        selectinload(Note.collaborators).selectinload(NoteCollaborator.user),
    )


def note_not_found(note_id: UUID) -> NotFoundError:
    return NotFoundError(
        resource="note",
        resource_id=str(note_id),
        message=NOTE_NOT_FOUND_MESSAGE,
        code="NOTE_NOT_FOUND",
    )


async def get_accessible_note(
    db: AsyncSession,
    note_id: UUID,
    user_id: UUID,
    action: NoteAction = NoteAction.VIEW,
    refresh: bool = False,
) -> Note:
    """
    Load a note the user may perform `action` on, with author and
    collaborators loaded.

    Raises:
        NotFoundError (NOTE_NOT_FOUND): missing, or the user lacks the right
    """
    stmt = (
        select(Note)
        .where(Note.id == note_id, note_access_clause(user_id, action))
        .options(*note_load_options())
    )
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    note = (await db.execute(stmt)).scalar_one_or_none()
    if note is None:
        raise note_not_found(note_id)
    return note


def task_count_column():
    return (
        select(func.count(Task.id))
        .where(Task.note_id == Note.id)
        .correlate(Note)
        .scalar_subquery()
        .label("task_count")
    )


class NoteService:
    """
    Business logic for notes.

    Error Handling Strategy:
        Domain errors are raised as SharedTodoError subclasses and propagate
        untouched. SQLAlchemy errors propagate too; the session dependency
        rolls back and the global handlers map IntegrityError to 409.
    """

    async def create_note(self, db: AsyncSession, user: User, data: NoteCreate) -> Note:
        note = Note(title=data.title, content=data.content, author_id=user.id)
        db.add(note)
        await db.flush()
        logger.info("Note created: %s by user %s", note.id, user.id)
        return await get_accessible_note(db, note.id, user.id, refresh=True)

    async def list_notes(
        self,
        db: AsyncSession,
        user_id: UUID,
        page: int = 1,
        limit: int = 20,
        archived: bool = False,
    ) -> Tuple[List[Tuple[Note, int]], int]:
        """
        Notes the user owns or collaborates on, most recently updated first.

        Returns:
            ([(note, task_count), ...], total_count)
        """
        filters = (note_access_clause(user_id, NoteAction.VIEW), Note.is_archived == archived)

        total = (
            await db.execute(select(func.count(Note.id)).where(*filters))
        ).scalar_one()

        stmt = (
            select(Note, task_count_column())
            .where(*filters)
            .options(*note_load_options())
            .order_by(Note.updated_at.desc(), Note.created_at.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
        )
        rows = (await db.execute(stmt)).all()

        logger.debug("Listed %d of %d notes for user %s", len(rows), total, user_id)
        return [(row[0], row[1]) for row in rows], total

    async def get_note_detail(
        self,
        db: AsyncSession,
        user_id: UUID,
        note_id: UUID,
    ) -> Tuple[Note, Sequence[Task], str]:
        """Note, its tasks in listing order, and the caller's role."""
        note = await get_accessible_note(db, note_id, user_id)
        tasks = (
            await db.execute(
                select(Task)
                .where(Task.note_id == note.id)
                .options(selectinload(Task.author), selectinload(Task.assignee))
                .order_by(*task_ordering())
            )
        ).scalars().all()
        return note, tasks, role_of(user_id, note)

    async def update_note(
        self,
        db: AsyncSession,
        user_id: UUID,
        note_id: UUID,
        data: NoteUpdate,
    ) -> Tuple[Note, int]:
        """Owner, editors and admins may edit; anyone else sees NOTE_NOT_FOUND."""
        note = await get_accessible_note(db, note_id, user_id, NoteAction.EDIT)

        for field, value in data.changes().items():
            setattr(note, field, value)
        note.updated_at = utcnow()
        await db.flush()

        logger.info("Note updated: %s by user %s", note.id, user_id)
        note = await get_accessible_note(db, note_id, user_id, refresh=True)
        return note, await self._count_tasks(db, note.id)

    async def delete_note(self, db: AsyncSession, user_id: UUID, note_id: UUID) -> None:
        """
        Owner only. Tasks, collaborator rows and pending invitations are
        removed by ON DELETE CASCADE.
        """
        note = await get_accessible_note(db, note_id, user_id, NoteAction.DELETE)
        await db.execute(delete(Note).where(Note.id == note.id))
        logger.info("Note deleted: %s by user %s", note_id, user_id)

    @staticmethod
    async def _count_tasks(db: AsyncSession, note_id: UUID) -> int:
        result = await db.execute(select(func.count(Task.id)).where(Task.note_id == note_id))
        return result.scalar_one()


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
