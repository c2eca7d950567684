"""
Shared Todo Backend — Invitation Service
=========================================

What:  Resolve, accept and decline token-addressed invitations.
How:   The token is checked for our signature and the invitation marker
       before any lookup. Expiry is compared live against `expires_at`.

    read     INVALID_TOKEN → INVITATION_NOT_FOUND → INVITATION_EXPIRED
    accept   INVALID_TOKEN → INVITATION_NOT_FOUND → INVITATION_EXPIRED
             → EMAIL_MISMATCH → ALREADY_COLLABORATOR (stale row deleted)
             → collaborator created + invitation deleted (one transaction)
    decline  INVALID_TOKEN → INVITATION_NOT_FOUND → invitation deleted
             (expired invitations can still be declined)

Accepting or declining twice fails the second time with INVITATION_NOT_FOUND.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sharedtodo.exceptions import AuthorizationError, BadRequestError, ConflictError, NotFoundError
from sharedtodo.models.collaborator import NoteCollaborator
from sharedtodo.models.invitation import Invitation
from sharedtodo.models.user import User
from sharedtodo.security import is_invitation_token

logger = logging.getLogger(__name__)


class InvitationService:

    async def _load(self, db: AsyncSession, token: str) -> Invitation:
        if not is_invitation_token(token):
            raise BadRequestError("Invalid invitation token", code="INVALID_TOKEN")

        result = await db.execute(
            select(Invitation)
            .where(Invitation.token == token)
            .options(selectinload(Invitation.note), selectinload(Invitation.invited_by))
        )
        invitation = result.scalar_one_or_none()
        if invitation is None:
            raise NotFoundError(
                resource="invitation",
                message="Invitation not found",
                code="INVITATION_NOT_FOUND",
            )
        return invitation

    @staticmethod
    def _ensure_not_expired(invitation: Invitation) -> None:
        if invitation.is_expired():
            raise BadRequestError("Invitation has expired", code="INVITATION_EXPIRED")

    async def get_invitation(self, db: AsyncSession, token: str) -> Invitation:
        """Public: anyone holding the token may read the invitation."""
        invitation = await self._load(db, token)
        self._ensure_not_expired(invitation)
        return invitation

    async def accept(self, db: AsyncSession, user: User, token: str) -> NoteCollaborator:
        """
        Turn the invitation into a collaborator row for `user`.

        Both writes are flushed together and committed by the request's
        session dependency, so either both land or neither does. A unique
        violation from a concurrent direct addition rolls everything back
        and surfaces as 409 CONFLICT.
        """
        invitation = await self._load(db, token)
        self._ensure_not_expired(invitation)

        if invitation.email.lower() != user.email.lower():
            raise AuthorizationError(
                "Invitation email does not match your account email",
                code="EMAIL_MISMATCH",
            )

        note = invitation.note
        existing = (
            await db.execute(
                select(NoteCollaborator.id).where(
                    NoteCollaborator.note_id == note.id,
                    NoteCollaborator.user_id == user.id,
                )
            )
        ).first()
        if existing is not None or note.author_id == user.id:
            await db.delete(invitation)
            # Why commit here: the request session rolls back on the raised
            # ConflictError, which would restore the stale invitation
            await db.commit()
            logger.info("Stale invitation %s removed: user %s already on note", invitation.id, user.id)
            raise ConflictError(
                "You are already a collaborator on this note",
                code="ALREADY_COLLABORATOR",
            )

        collaborator = NoteCollaborator(
            note_id=note.id,
            user_id=user.id,
            role=invitation.role,
            user=user,
            note=note,
        )
        db.add(collaborator)
        await db.delete(invitation)
        await db.flush()

        logger.info(
            "Invitation %s accepted: user %s joined note %s as %s",
            invitation.id, user.id, note.id, collaborator.role,
        )
        return collaborator

    async def decline(self, db: AsyncSession, token: str) -> None:
        invitation = await self._load(db, token)
        await db.delete(invitation)
        await db.flush()
        logger.info("Invitation %s declined", invitation.id)


invitation_service = InvitationService()
