"""
Shared Todo Backend — Invitation Route Handlers
================================================

What:  Token-addressed invitation endpoints.

    GET    /invitations/{token}          public: note, inviter, role, expiry
    POST   /invitations/{token}/accept   authenticated, email must match
    DELETE /invitations/{token}          public: decline

Who:   The invitation page the emailed link points to.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from sharedtodo.database import get_db_session
from sharedtodo.dependencies import get_current_user
from sharedtodo.models.user import User
from sharedtodo.schemas.common import ApiResponse, ErrorResponse, MessageData
from sharedtodo.schemas.invitation import (
    AcceptedMembership,
    InvitationAcceptedData,
    InvitationDetail,
    InvitationDetailData,
)
from sharedtodo.services.invitation_service import invitation_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/invitations",
    tags=["Invitations"],
    responses={
        400: {"description": "Malformed or expired invitation token", "model": ErrorResponse},
        404: {"description": "Invitation not found", "model": ErrorResponse},
    },
)

TokenPath = Annotated[
    str, Path(min_length=1, max_length=512, description="Invitation token from the invite link")
]


@router.get("/{token}", response_model=ApiResponse[InvitationDetailData], summary="Read an invitation")
async def get_invitation(
    token: TokenPath,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[InvitationDetailData]:
    invitation = await invitation_service.get_invitation(db, token)
    return ApiResponse[InvitationDetailData](
        data=InvitationDetailData(invitation=InvitationDetail.model_validate(invitation))
    )


@router.post(
    "/{token}/accept",
    response_model=ApiResponse[InvitationAcceptedData],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Invitation addressed to another email", "model": ErrorResponse},
        409: {"description": "Already a collaborator", "model": ErrorResponse},
    },
    summary="Accept an invitation and join the note",
)
async def accept_invitation(
    token: TokenPath,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[InvitationAcceptedData]:
    collaborator = await invitation_service.accept(db, user, token)
    return ApiResponse[InvitationAcceptedData](
        data=InvitationAcceptedData(collaborator=AcceptedMembership.model_validate(collaborator))
    )


@router.delete("/{token}", response_model=ApiResponse[MessageData], summary="Decline an invitation")
async def decline_invitation(
    token: TokenPath,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[MessageData]:
    await invitation_service.decline(db, token)
    return ApiResponse[MessageData](data=MessageData(message="Invitation declined successfully"))
