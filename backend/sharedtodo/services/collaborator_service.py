"""
Shared Todo Backend — Collaborator Service
===========================================

What:  Sharing a note: invite, list members, change a role, remove a member.

Invite flow (POST /notes/{id}/invite, owner or admin):

    email == owner's email ──────────────────────▶ 400 CANNOT_INVITE_AUTHOR
    email belongs to a user
        ├── already a collaborator ─────────────▶ 409 ALREADY_COLLABORATOR
        └── otherwise ──▶ collaborator row      ─▶ type "direct_addition"
    no such user
        ├── expired invitations for (email, note) are purged
        ├── unexpired invitation exists ────────▶ 409 INVITATION_ALREADY_EXISTS
        └── otherwise ──▶ invitation row        ─▶ type "invitation_created"

Removal rules:
    - The owner can never be removed (CANNOT_REMOVE_AUTHOR), whoever asks.
    - Admins and the owner may remove anyone else; any collaborator may
      remove themselves.
    - Tasks assigned to the removed user lose their assignee.
"""

import logging
from datetime import timedelta
from typing import Optional, Tuple, Union
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sharedtodo.config import settings
from sharedtodo.exceptions import BadRequestError, ConflictError, NotFoundError
from sharedtodo.models.collaborator import NoteCollaborator
from sharedtodo.models.common import utcnow
from sharedtodo.models.invitation import Invitation
from sharedtodo.models.note import Note
from sharedtodo.models.task import Task
from sharedtodo.models.user import User
from sharedtodo.policy import NoteAction, can_administer
from sharedtodo.schemas.note import InviteRequest
from sharedtodo.security import create_invitation_token
from sharedtodo.services.note_service import get_accessible_note, note_not_found

logger = logging.getLogger(__name__)

DIRECT_ADDITION = "direct_addition"
INVITATION_CREATED = "invitation_created"


def invitation_url(token: str) -> str:
    return f"{settings.client_url.rstrip('/')}/invitations/{token}"


def _membership(note: Note, user_id: UUID) -> Optional[NoteCollaborator]:
    for membership in note.collaborators:
        if membership.user_id == user_id:
            return membership
    return None


def collaborator_not_found(user_id: UUID) -> NotFoundError:
    return NotFoundError(
        resource="collaborator",
        resource_id=str(user_id),
        message="Collaborator not found",
        code="COLLABORATOR_NOT_FOUND",
    )


class CollaboratorService:

    async def invite(
        self,
        db: AsyncSession,
        inviter: User,
        note_id: UUID,
        data: InviteRequest,
    ) -> Tuple[str, Union[NoteCollaborator, Invitation]]:
        """
        Share a note with an email address.

        Returns:
            ("direct_addition", NoteCollaborator) or
            ("invitation_created", Invitation)
        """
        note = await get_accessible_note(db, note_id, inviter.id, NoteAction.ADMINISTER)
        email = data.email.lower()
        role = data.role.value

        if email == note.author.email:
            raise BadRequestError("Cannot invite the note author", code="CANNOT_INVITE_AUTHOR")

        target = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

        if target is not None:
            if _membership(note, target.id) is not None:
                raise ConflictError(
                    "User is already a collaborator on this note",
                    code="ALREADY_COLLABORATOR",
                )
            collaborator = NoteCollaborator(note_id=note.id, user_id=target.id, role=role, user=target)
            db.add(collaborator)
            await db.flush()
            logger.info(
                "User %s added directly to note %s as %s by %s",
                target.id, note.id, role, inviter.id,
            )
            return DIRECT_ADDITION, collaborator

        now = utcnow()
        await db.execute(
            delete(Invitation).where(
                Invitation.email == email,
                Invitation.note_id == note.id,
                Invitation.expires_at < now,
            )
            .execution_options(synchronize_session=False)
        )

        pending = (
            await db.execute(
                select(Invitation.id).where(
                    Invitation.email == email,
                    Invitation.note_id == note.id,
                )
            )
        ).first()
        if pending is not None:
            raise ConflictError(
                "An invitation for this email is already pending",
                code="INVITATION_ALREADY_EXISTS",
            )

        invitation = Invitation(
            token=create_invitation_token(),
            email=email,
            note_id=note.id,
            invited_by_id=inviter.id,
            role=role,
            expires_at=now + timedelta(days=settings.invitation_expires_days),
        )
        db.add(invitation)
        await db.flush()
        logger.info("Invitation %s created for note %s by %s", invitation.id, note.id, inviter.id)
        return INVITATION_CREATED, invitation

    async def list_collaborators(self, db: AsyncSession, user_id: UUID, note_id: UUID) -> Note:
        """Any member may see who else is on the note."""
        return await get_accessible_note(db, note_id, user_id)

    async def update_role(
        self,
        db: AsyncSession,
        user_id: UUID,
        note_id: UUID,
        target_user_id: UUID,
        role: str,
    ) -> NoteCollaborator:
        note = await get_accessible_note(db, note_id, user_id, NoteAction.ADMINISTER)

        if target_user_id == note.author_id:
            raise BadRequestError("Cannot modify the note author's role", code="CANNOT_MODIFY_AUTHOR")

        membership = _membership(note, target_user_id)
        if membership is None:
            raise collaborator_not_found(target_user_id)

        membership.role = role
        await db.flush()
        logger.info("Role of user %s on note %s set to %s by %s", target_user_id, note.id, role, user_id)
        return membership

    async def remove(
        self,
        db: AsyncSession,
        user_id: UUID,
        note_id: UUID,
        target_user_id: UUID,
    ) -> None:
        note = await get_accessible_note(db, note_id, user_id)

        if target_user_id == note.author_id:
            raise BadRequestError("Cannot remove the note author", code="CANNOT_REMOVE_AUTHOR")

        if target_user_id != user_id and not can_administer(user_id, note):
            raise note_not_found(note_id)

        membership = _membership(note, target_user_id)
        if membership is None:
            raise collaborator_not_found(target_user_id)

        await db.execute(
            update(Task)
            .where(Task.note_id == note.id, Task.assignee_id == target_user_id)
            .values(assignee_id=None)
        )
        await db.delete(membership)
        await db.flush()
        logger.info("User %s removed from note %s by %s", target_user_id, note.id, user_id)


collaborator_service = CollaboratorService()
