"""
Shared Todo Backend — Auth Route Handlers
==========================================

What:  POST /auth/register, POST /auth/login, POST /auth/logout, GET /auth/me
How:   Thin handlers: validated body in, AuthService call, envelope out.
       Register and login are public; logout and me require a bearer token.

Logout is stateless: tokens stay valid until they expire, the client is
expected to discard its copy.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from sharedtodo.database import get_db_session
from sharedtodo.dependencies import get_current_user
from sharedtodo.models.user import User
from sharedtodo.schemas.auth import AuthPayload, LoginRequest, MeData, RegisterRequest
from sharedtodo.schemas.common import ApiResponse, ErrorResponse, MessageData
from sharedtodo.schemas.user import UserProfile
from sharedtodo.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[AuthPayload],
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AuthPayload]:
    user, token = await auth_service.register(db, body)
    return ApiResponse[AuthPayload](
        data=AuthPayload(user=UserProfile.model_validate(user), token=token)
    )


@router.post(
    "/login",
    response_model=ApiResponse[AuthPayload],
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange email and password for a session token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[AuthPayload]:
    user, token = await auth_service.login(db, body)
    return ApiResponse[AuthPayload](
        data=AuthPayload(user=UserProfile.model_validate(user), token=token)
    )


@router.post(
    "/logout",
    response_model=ApiResponse[MessageData],
    summary="End the session (client discards its token)",
)
async def logout(user: User = Depends(get_current_user)) -> ApiResponse[MessageData]:
    logger.info("User logged out: %s", user.id)
    return ApiResponse[MessageData](data=MessageData(message="Logged out successfully"))


@router.get(
    "/me",
    response_model=ApiResponse[MeData],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="The authenticated user's profile",
)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[MeData]:
    profile = await auth_service.get_profile(db, user.id)
    return ApiResponse[MeData](data=MeData(user=UserProfile.model_validate(profile)))
