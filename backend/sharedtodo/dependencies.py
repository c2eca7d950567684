"""
Shared Todo Backend — Request Dependencies
===========================================

What:  FastAPI dependencies shared by the route modules.
How:   `get_current_user` reads `Authorization: Bearer <token>`, verifies the
       session token and loads the user row. A valid token whose user no
       longer exists is rejected as INVALID_TOKEN.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from sharedtodo.database import get_db_session
from sharedtodo.exceptions import InvalidTokenError
from sharedtodo.models.user import User
from sharedtodo.security import decode_access_token, extract_bearer_token

logger = logging.getLogger(__name__)


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = extract_bearer_token(authorization)
    payload = decode_access_token(token)

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError):
        raise InvalidTokenError()

    user = await db.get(User, user_id)
    if user is None:
        logger.info("Token for unknown user %s rejected", user_id)
        raise InvalidTokenError("User not found for token")
    return user
