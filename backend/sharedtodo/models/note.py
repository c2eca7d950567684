"""
Shared Todo Backend — Note SQLAlchemy Model
============================================

What:  ORM model representing the `notes` table.
Who:   Used by NoteService, CollaboratorService and TaskService, and by
       Alembic for schema management.

Table Design Rationale:
    - author_id: the owner. Immutable after creation and never duplicated as
      a collaborator row; the owner's access is implicit.
    - is_archived: archived notes drop out of the default listing but stay
      reachable by id.
    - updated_at: drives the listing order (most recently edited first).

    Index on updated_at DESC:
        Optimizes the listing query ("my notes, latest first").
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharedtodo.database import Base
from sharedtodo.models.common import utcnow

if TYPE_CHECKING:
    from sharedtodo.models.collaborator import NoteCollaborator
    from sharedtodo.models.task import Task
    from sharedtodo.models.user import User


class Note(Base):
    """
    A shared document that owns tasks and has zero or more collaborators.

    Lifecycle:
        1. Created by its author (the owner)
        2. Edited by the owner, editors and admins (bumps updated_at)
        3. Deleted by the owner only; tasks, collaborator rows and pending
           invitations go with it (ON DELETE CASCADE)
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Free-form note body",
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owner: implicit full control, never a collaborator row",
    )

    is_archived: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
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

    # ── Relationships ─────────────────────────────────────────────────────
    # Always loaded explicitly (selectinload): async sessions cannot lazy-load
    author: Mapped["User"] = relationship("User")

    collaborators: Mapped[List["NoteCollaborator"]] = relationship(
        "NoteCollaborator",
        back_populates="note",
        passive_deletes=True,
        order_by="NoteCollaborator.joined_at",
    )

    tasks: Mapped[List["Task"]] = relationship(
        "Task",
        back_populates="note",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_notes_updated_at", updated_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title='{self.title}', author_id={self.author_id})>"
