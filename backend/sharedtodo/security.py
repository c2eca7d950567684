"""
Shared Todo Backend — Credential Service
=========================================

What:  Password hashing and signed-token issuance/verification.
How:   passlib `CryptContext` for password hashes; PyJWT (HS256) for session
       tokens and invitation tokens, both signed with `settings.jwt_secret`.
Who:   AuthService (register/login), the `get_current_user` dependency and
       the invitation workflow.

Token types:
    access      {sub, email, name, type="access", iat, exp}
    invitation  {type="invitation", iat, nonce}
        Invitation tokens carry no `exp`: the invitation row's expires_at is
        the single source of truth, so an expired invitation still resolves
        (and can still be declined) but is rejected as INVITATION_EXPIRED.
"""

import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from sharedtodo.config import settings
from sharedtodo.exceptions import AuthenticationError, InvalidTokenError, TokenExpiredError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
INVITATION_TOKEN_TYPE = "invitation"

# At least one letter and one digit; length is enforced by the schema (8–100)
PASSWORD_PATTERN = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)")

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__rounds=settings.password_hash_rounds,
)


# ══════════════════════════════════════════════════════════════════════════
# Passwords
# ══════════════════════════════════════════════════════════════════════════

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison; malformed hashes count as a mismatch."""
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        logger.warning("Unrecognized password hash format")
        return False


def is_strong_password(password: str) -> bool:
    return bool(PASSWORD_PATTERN.match(password))


# ══════════════════════════════════════════════════════════════════════════
# Session tokens
# ══════════════════════════════════════════════════════════════════════════

def create_access_token(
    user_id: Any,
    email: str,
    name: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Issue a signed session token for an authenticated user."""
    now = datetime.now(timezone.utc)
    expires = now + (expires_delta or timedelta(days=settings.jwt_expires_days))
    payload = {
        "sub": str(user_id),
        "email": email,
        "name": name,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": expires,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry of a session token.

    Raises:
        TokenExpiredError: the token's exp is in the past
        InvalidTokenError: bad signature, malformed token, wrong token type
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError:
        raise InvalidTokenError()

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise InvalidTokenError()
    return payload


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Extract the token from an `Authorization: Bearer <token>` header.

    Raises:
        AuthenticationError: header missing or not in Bearer format
    """
    if not authorization:
        raise AuthenticationError("Authorization header is missing")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthenticationError("Invalid authorization header format")
    return parts[1]


# ══════════════════════════════════════════════════════════════════════════
# Invitation tokens
# ══════════════════════════════════════════════════════════════════════════

def create_invitation_token() -> str:
    """Signed token embedding a type marker and its issuance time."""
    payload = {
        "type": INVITATION_TOKEN_TYPE,
        "iat": datetime.now(timezone.utc),
        "nonce": secrets.token_urlsafe(12),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def is_invitation_token(token: str) -> bool:
    """True when the token was signed by us and carries the invitation marker."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except jwt.InvalidTokenError:
        return False
    return payload.get("type") == INVITATION_TOKEN_TYPE
