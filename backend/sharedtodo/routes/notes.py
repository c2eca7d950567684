"""
Shared Todo Backend — Notes Route Handlers
===========================================

What:  Note CRUD plus the sharing endpoints nested under a note.

    GET    /notes                       list (paginated, ?archived=)
    POST   /notes                       create
    GET    /notes/{id}                  detail (author, collaborators, tasks)
    PUT    /notes/{id}                  update (owner, editor, admin)
    DELETE /notes/{id}                  delete (owner)
    POST   /notes/{id}/invite           invite by email (owner, admin)
    GET    /notes/{id}/users            members
    PUT    /notes/{id}/users/{userId}   change role (owner, admin)
    DELETE /notes/{id}/users/{userId}   remove (owner, admin, or self)

All endpoints require a bearer token. Notes the caller cannot see, or
cannot act on, answer 404 NOTE_NOT_FOUND.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sharedtodo.database import get_db_session
from sharedtodo.dependencies import get_current_user
from sharedtodo.models.user import User
from sharedtodo.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ApiResponse,
    ErrorResponse,
    build_pagination,
)
from sharedtodo.schemas.note import (
    CollaboratorListData,
    CollaboratorOut,
    CollaboratorRemovedData,
    CreatedInvitation,
    DirectAdditionResult,
    InvitationCreatedResult,
    InviteRequest,
    InviteResult,
    NoteCreate,
    NoteDeletedData,
    NoteDetail,
    NoteListData,
    NoteSummary,
    NoteUpdate,
    RoleUpdateRequest,
)
from sharedtodo.schemas.user import UserPublic
from sharedtodo.services.collaborator_service import (
    DIRECT_ADDITION,
    collaborator_service,
    invitation_url,
)
from sharedtodo.services.note_service import note_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(
    prefix="/notes",
    tags=["Notes"],
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Note not found or insufficient permissions", "model": ErrorResponse},
    },
)


@router.get("", response_model=ApiResponse[NoteListData], summary="List visible notes")
async def list_notes(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    archived: bool = Query(default=False, description="List archived notes instead of active ones"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[NoteListData]:
    """
    Notes the caller owns or collaborates on, most recently updated first.

    Example:
        GET /api/v1/notes?page=2&limit=10
    """
    rows, total = await note_service.list_notes(db, user.id, page=page, limit=limit, archived=archived)
    return ApiResponse[NoteListData](
        data=NoteListData(
            notes=[NoteSummary.build(note, count) for note, count in rows],
            pagination=build_pagination(page, limit, total),
        )
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[NoteSummary],
    summary="Create a note owned by the caller",
)
async def create_note(
    body: NoteCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[NoteSummary]:
    note = await note_service.create_note(db, user, body)
    return ApiResponse[NoteSummary](data=NoteSummary.build(note))


@router.get("/{note_id}", response_model=ApiResponse[NoteDetail], summary="Get a note with its tasks")
async def get_note(
    note_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[NoteDetail]:
    note, tasks, role = await note_service.get_note_detail(db, user.id, note_id)
    return ApiResponse[NoteDetail](data=NoteDetail.build(note, tasks, role))


@router.put("/{note_id}", response_model=ApiResponse[NoteSummary], summary="Update a note")
async def update_note(
    note_id: UUID,
    body: NoteUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[NoteSummary]:
    note, task_count = await note_service.update_note(db, user.id, note_id, body)
    return ApiResponse[NoteSummary](data=NoteSummary.build(note, task_count))


@router.delete("/{note_id}", response_model=ApiResponse[NoteDeletedData], summary="Delete a note")
async def delete_note(
    note_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[NoteDeletedData]:
    await note_service.delete_note(db, user.id, note_id)
    return ApiResponse[NoteDeletedData](data=NoteDeletedData(note_id=note_id))


# ══════════════════════════════════════════════════════════════════════════
# Sharing
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "/{note_id}/invite",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[InviteResult],
    responses={
        400: {"description": "Cannot invite the note author", "model": ErrorResponse},
        409: {"description": "Already a collaborator or invitation pending", "model": ErrorResponse},
    },
    summary="Share a note with an email address",
)
async def invite(
    note_id: UUID,
    body: InviteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[InviteResult]:
    """
    Existing users are added immediately (`type: direct_addition`); unknown
    emails get a pending invitation with a link (`type: invitation_created`).
    """
    kind, result = await collaborator_service.invite(db, user, note_id, body)
    if kind == DIRECT_ADDITION:
        outcome = DirectAdditionResult(collaborator=CollaboratorOut.model_validate(result))
    else:
        outcome = InvitationCreatedResult(
            invitation=CreatedInvitation.model_validate(result),
            invitation_url=invitation_url(result.token),
        )
    return ApiResponse[InviteResult](data=outcome)


@router.get("/{note_id}/users", response_model=ApiResponse[CollaboratorListData], summary="List note members")
async def list_collaborators(
    note_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[CollaboratorListData]:
    note = await collaborator_service.list_collaborators(db, user.id, note_id)
    return ApiResponse[CollaboratorListData](
        data=CollaboratorListData(
            author=UserPublic.model_validate(note.author),
            collaborators=[CollaboratorOut.model_validate(c) for c in note.collaborators],
        )
    )


@router.put(
    "/{note_id}/users/{user_id}",
    response_model=ApiResponse[CollaboratorOut],
    summary="Change a collaborator's role",
)
async def update_collaborator_role(
    note_id: UUID,
    user_id: UUID,
    body: RoleUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[CollaboratorOut]:
    membership = await collaborator_service.update_role(db, user.id, note_id, user_id, body.role.value)
    return ApiResponse[CollaboratorOut](data=CollaboratorOut.model_validate(membership))


@router.delete(
    "/{note_id}/users/{user_id}",
    response_model=ApiResponse[CollaboratorRemovedData],
    summary="Remove a collaborator (or leave the note)",
)
async def remove_collaborator(
    note_id: UUID,
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[CollaboratorRemovedData]:
    await collaborator_service.remove(db, user.id, note_id, user_id)
    return ApiResponse[CollaboratorRemovedData](data=CollaboratorRemovedData(user_id=user_id))
