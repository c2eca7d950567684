"""
Shared Todo Backend — Authentication Schemas
=============================================

What:  Request bodies for register/login and the payloads they return.
How:   Input rules are enforced here, before any database access:
           email     valid address, max 255 chars, stored lower-cased
           password  8–100 chars, at least one letter and one digit
           name      1–100 chars after trimming
"""

from pydantic import EmailStr, Field, field_validator

from sharedtodo.schemas.common import CamelModel
from sharedtodo.schemas.user import UserProfile
from sharedtodo.security import is_strong_password


class RegisterRequest(CamelModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=8, max_length=100)
    name: str = Field(min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not is_strong_password(v):
            raise ValueError("Password must contain at least one letter and one number")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class AuthPayload(CamelModel):
    """Returned by register and login."""

    user: UserProfile
    token: str


class MeData(CamelModel):
    user: UserProfile
