"""
Shared Todo Backend — Invitation SQLAlchemy Model
==================================================

What:  Pending, token-addressed offer for an email to join a note.

Lifecycle (state is implied, never stored):
    pending  → row exists and expires_at >= now
    expired  → row exists and expires_at <  now (checked at read time)
    accepted → row deleted, collaborator row created (same transaction)
    declined → row deleted

    Expired rows stay until declined or superseded by a fresh invitation
    for the same (email, note).
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sharedtodo.database import Base
from sharedtodo.models.common import CollaboratorRole, as_utc, utcnow

if TYPE_CHECKING:
    from sharedtodo.models.note import Note
    from sharedtodo.models.user import User


class Invitation(Base):
    __tablename__ = "invitations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    token: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        unique=True,
        comment="Signed invitation token (type marker + issuance time)",
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
    )

    invited_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CollaboratorRole.VIEWER.value,
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    note: Mapped["Note"] = relationship("Note")
    invited_by: Mapped["User"] = relationship("User")

    __table_args__ = (
        Index("idx_invitations_email_note", "email", "note_id"),
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Derived state: compared live against the current time."""
        return as_utc(self.expires_at) < (now or utcnow())

    def __repr__(self) -> str:
        return f"<Invitation(id={self.id}, email='{self.email}', note_id={self.note_id})>"
