"""
Shared Todo Backend — Auth Service
===================================

What:  Registration, login and profile lookup.
How:   Passwords are hashed with the credential service; a session token is
       issued on register and on login. Emails arrive lower-cased from the
       request schemas, so uniqueness is case-insensitive.
Who:   Called by the /auth route handlers.
"""

import logging
from typing import Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sharedtodo.exceptions import AuthenticationError, ConflictError, NotFoundError
from sharedtodo.models.common import utcnow
from sharedtodo.models.user import User
from sharedtodo.schemas.auth import LoginRequest, RegisterRequest
from sharedtodo.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Stateless; every call receives the request's session."""

    async def register(self, db: AsyncSession, data: RegisterRequest) -> Tuple[User, str]:
        """
        Create an account and issue its first session token.

        Raises:
            ConflictError (USER_ALREADY_EXISTS): email already registered
        """
        existing = await self._find_by_email(db, data.email)
        if existing is not None:
            raise ConflictError(
                "User with this email already exists",
                code="USER_ALREADY_EXISTS",
            )

        user = User(
            email=data.email,
            password_hash=hash_password(data.password),
            name=data.name,
        )
        db.add(user)
        # Flush so a concurrent duplicate surfaces here as an IntegrityError
        await db.flush()

        logger.info("User registered: %s", user.id)
        return user, self._issue_token(user)

    async def login(self, db: AsyncSession, data: LoginRequest) -> Tuple[User, str]:
        """
        Raises:
            AuthenticationError (INVALID_CREDENTIALS): unknown email or wrong
            password; the two cases are not distinguished
        """
        user = await self._find_by_email(db, data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            logger.info("Failed login attempt")
            raise AuthenticationError("Invalid email or password", code="INVALID_CREDENTIALS")

        user.last_login_at = utcnow()
        await db.flush()

        logger.info("User logged in: %s", user.id)
        return user, self._issue_token(user)

    async def get_profile(self, db: AsyncSession, user_id: UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", message="User not found", code="USER_NOT_FOUND")
        return user

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    async def _find_by_email(db: AsyncSession, email: str):
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    def _issue_token(user: User) -> str:
        return create_access_token(user.id, user.email, user.name)


auth_service = AuthService()
