"""
Shared Todo Backend — Task SQLAlchemy Model
============================================

What:  ORM model for the `tasks` table: to-do items scoped to one note.

Table Design:
    - status / priority: short enum-like strings (see models.common)
    - assignee_id: nullable; must reference the note's owner or one of its
      collaborators (checked in TaskService, cleared when a collaborator is
      removed, SET NULL if the user row disappears)
    - note_id: ON DELETE CASCADE, tasks go away with their note
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, case
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharedtodo.database import Base
from sharedtodo.models.common import TaskPriority, TaskStatus, utcnow

if TYPE_CHECKING:
    from sharedtodo.models.note import Note
    from sharedtodo.models.user import User


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TaskStatus.PENDING.value,
    )

    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TaskPriority.MEDIUM.value,
    )

    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    assignee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    note: Mapped["Note"] = relationship("Note", back_populates="tasks")
    author: Mapped["User"] = relationship("User", foreign_keys=[author_id])
    assignee: Mapped[Optional["User"]] = relationship("User", foreign_keys=[assignee_id])

    __table_args__ = (
        Index("idx_tasks_note_status", "note_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, status='{self.status}', priority='{self.priority}')>"


# ── Listing order ─────────────────────────────────────────────────────────
# Fixed multi-key sort: status bucket, priority (most urgent first),
# due date (earliest first, undated last), newest first.
STATUS_RANK = {status.value: rank for rank, status in enumerate(TaskStatus)}
PRIORITY_RANK = {priority.value: rank for rank, priority in enumerate(TaskPriority)}


def task_ordering():
    """ORDER BY clauses for every task listing."""
    return (
        case(STATUS_RANK, value=Task.status, else_=len(STATUS_RANK)).asc(),
        case(PRIORITY_RANK, value=Task.priority, else_=-1).desc(),
        # Why nulls_last: SQLite and PostgreSQL disagree on where NULLs sort;
        # undated tasks go after every dated one on both
        Task.due_date.asc().nulls_last(),
        Task.created_at.desc(),
    )
