"""
User reference schemas.

Every user embedded in a response goes through one of these allowlists;
the password hash has no field here and therefore never leaves the server.
"""

import uuid
from typing import Optional

from sharedtodo.schemas.common import CamelModel, UtcDatetime


class UserPublic(CamelModel):
    """The shape used for authors, assignees, inviters and collaborators."""

    id: uuid.UUID
    name: str
    email: str


class UserProfile(UserPublic):
    """The caller's own account (register, login, /auth/me)."""

    created_at: UtcDatetime
    last_login_at: Optional[UtcDatetime] = None
