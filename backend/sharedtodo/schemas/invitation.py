"""Response shapes for the token-addressed invitation endpoints."""

import uuid

from sharedtodo.schemas.common import CamelModel, UtcDatetime
from sharedtodo.schemas.task import NoteRef
from sharedtodo.schemas.user import UserPublic


class InvitationNote(NoteRef):
    content: str


class InvitationDetail(CamelModel):
    id: uuid.UUID
    email: str
    role: str
    expires_at: UtcDatetime
    note: InvitationNote
    invited_by: UserPublic


class InvitationDetailData(CamelModel):
    invitation: InvitationDetail


class AcceptedMembership(CamelModel):
    id: uuid.UUID
    role: str
    joined_at: UtcDatetime
    user: UserPublic
    note: NoteRef


class InvitationAcceptedData(CamelModel):
    message: str = "Invitation accepted successfully"
    collaborator: AcceptedMembership
