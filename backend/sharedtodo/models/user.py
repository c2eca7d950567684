"""
Shared Todo Backend — User SQLAlchemy Model
============================================

What:  ORM model for the `users` table.
Who:   Created by AuthService at registration; referenced by notes, tasks,
       collaborator rows and invitations.

Table Design:
    - email is unique and stored lower-cased (see schemas.auth)
    - password_hash never leaves the service layer; every response shapes
      users through `schemas.user.UserPublic`
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from sharedtodo.database import Base
from sharedtodo.models.common import utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Login identity, lower-cased",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="passlib hash string, never serialized",
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
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

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
