"""
Shared Todo Backend — Note & Collaborator Schemas
==================================================

What:  Pydantic models defining the API contract for notes, their
       collaborators and the invite endpoint.
How:   Response models read straight from ORM objects (from_attributes);
       computed values (task count, the caller's role, ordered tasks) are
       attached by the `build` constructors.

Design Decision:
    Schemas are separate from SQLAlchemy models because:
    1. Every embedded user goes through `UserPublic` (no password hash)
    2. Computed fields (taskCount, role) have no column
    3. Validation rules differ from DB constraints (title trimming, role enum)
"""

import uuid
from typing import List, Literal, Optional, Sequence, Union

from pydantic import EmailStr, Field, field_validator

from sharedtodo.models.common import CollaboratorRole
from sharedtodo.schemas.common import CamelModel, PaginationMeta, UtcDatetime
from sharedtodo.schemas.task import TaskOut
from sharedtodo.schemas.user import UserPublic


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(default="")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("content", mode="before")
    @classmethod
    def null_content_is_empty(cls, v):
        return "" if v is None else v


class NoteUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = None
    is_archived: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    def changes(self) -> dict:
        """Sent, non-null fields; null never overwrites a note column."""
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class InviteRequest(CamelModel):
    email: EmailStr
    role: CollaboratorRole = CollaboratorRole.VIEWER

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class RoleUpdateRequest(CamelModel):
    role: CollaboratorRole


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class CollaboratorOut(CamelModel):
    id: uuid.UUID
    note_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    joined_at: UtcDatetime
    user: UserPublic


class NoteSummary(CamelModel):
    """
    Note as it appears in listings and after create/update.

    Requires `author` and `collaborators.user` to be loaded on the ORM object.
    """

    id: uuid.UUID
    title: str
    content: str
    author_id: uuid.UUID
    is_archived: bool
    created_at: UtcDatetime
    updated_at: UtcDatetime
    author: UserPublic
    collaborators: List[CollaboratorOut] = Field(default_factory=list)
    task_count: int = 0

    @classmethod
    def build(cls, note, task_count: int = 0) -> "NoteSummary":
        summary = cls.model_validate(note)
        summary.task_count = task_count
        return summary


class NoteDetail(NoteSummary):
    """Full note: ordered tasks plus the caller's role on it."""

    tasks: List[TaskOut] = Field(default_factory=list)
    role: str

    @classmethod
    def build(cls, note, tasks: Sequence, role: str) -> "NoteDetail":
        base = NoteSummary.model_validate(note)
        return cls(
            **base.model_dump(exclude={"task_count"}),
            task_count=len(tasks),
            tasks=[TaskOut.model_validate(task) for task in tasks],
            role=role,
        )


class NoteListData(CamelModel):
    notes: List[NoteSummary]
    pagination: PaginationMeta


class NoteDeletedData(CamelModel):
    message: str = "Note deleted successfully"
    note_id: uuid.UUID


class CollaboratorListData(CamelModel):
    author: UserPublic
    collaborators: List[CollaboratorOut]


class CollaboratorRemovedData(CamelModel):
    message: str = "Collaborator removed successfully"
    user_id: uuid.UUID


# ── Invite outcomes ───────────────────────────────────────────────────────


class CreatedInvitation(CamelModel):
    id: uuid.UUID
    email: str
    role: str
    expires_at: UtcDatetime
    token: str


class DirectAdditionResult(CamelModel):
    """The invitee already has an account: they were added immediately."""

    type: Literal["direct_addition"] = "direct_addition"
    collaborator: CollaboratorOut


class InvitationCreatedResult(CamelModel):
    """The invitee has no account yet: a pending invitation was stored."""

    type: Literal["invitation_created"] = "invitation_created"
    invitation: CreatedInvitation
    invitation_url: str


InviteResult = Union[DirectAdditionResult, InvitationCreatedResult]
