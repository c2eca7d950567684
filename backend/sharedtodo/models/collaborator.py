"""
Shared Todo Backend — NoteCollaborator SQLAlchemy Model
========================================================

What:  Join entity granting a non-owner user a role on one note.
When:  Created when an invitation is accepted or when an invite targets an
       existing user directly; role changed by admins; deleted on removal.

Invariant:
    UNIQUE (note_id, user_id): a user holds at most one role per note.
    Concurrent direct-adds that race past the service check hit this
    constraint and surface as 409 CONFLICT.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharedtodo.database import Base
from sharedtodo.models.common import CollaboratorRole, utcnow

if TYPE_CHECKING:
    from sharedtodo.models.note import Note
    from sharedtodo.models.user import User


class NoteCollaborator(Base):
    __tablename__ = "note_collaborators"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Values: viewer | editor | admin
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CollaboratorRole.VIEWER.value,
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    note: Mapped["Note"] = relationship("Note", back_populates="collaborators")
    user: Mapped["User"] = relationship("User")

    __table_args__ = (
        UniqueConstraint("note_id", "user_id", name="uq_note_collaborators_note_user"),
    )

    def __repr__(self) -> str:
        return (
            f"<NoteCollaborator(note_id={self.note_id}, user_id={self.user_id}, "
            f"role='{self.role}')>"
        )
