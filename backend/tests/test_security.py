"""
Shared Todo Backend — Credential Unit Tests
============================================

What:  Password hashing, session tokens and invitation tokens.
"""

from datetime import timedelta
from uuid import uuid4

import jwt
import pytest

from sharedtodo.config import settings
from sharedtodo.exceptions import AuthenticationError, InvalidTokenError, TokenExpiredError
from sharedtodo.security import (
    create_access_token,
    create_invitation_token,
    decode_access_token,
    extract_bearer_token,
    hash_password,
    is_invitation_token,
    is_strong_password,
    verify_password,
)


class TestPasswords:

    def test_hash_is_salted_and_verifiable(self):
        first = hash_password("abc12345")
        second = hash_password("abc12345")

        assert first != second
        assert verify_password("abc12345", first)
        assert not verify_password("abc12346", first)

    def test_malformed_hash_is_a_mismatch(self):
        assert verify_password("abc12345", "not-a-hash") is False

    @pytest.mark.parametrize(
        "password,strong",
        [("abc12345", True), ("ABCDEFG1", True), ("abcdefgh", False), ("12345678", False)],
    )
    def test_strength(self, password, strong):
        assert is_strong_password(password) is strong


class TestAccessTokens:

    def test_round_trip(self):
        user_id = uuid4()
        token = create_access_token(user_id, "a@example.com", "A")

        payload = decode_access_token(token)

        assert payload["sub"] == str(user_id)
        assert payload["email"] == "a@example.com"
        assert payload["type"] == "access"

    def test_expired(self):
        token = create_access_token(uuid4(), "a@example.com", "A", expires_delta=timedelta(seconds=-1))

        with pytest.raises(TokenExpiredError):
            decode_access_token(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": "x", "type": "access", "exp": 9999999999}, "another-secret-that-is-long-enough-0123", algorithm="HS256"
        )

        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    def test_invitation_token_is_not_a_session(self):
        with pytest.raises(InvalidTokenError):
            decode_access_token(create_invitation_token())


class TestBearerHeader:

    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "bearer abc", "Basic abc", "Bearer a b"])
    def test_rejects_bad_headers(self, header):
        with pytest.raises(AuthenticationError):
            extract_bearer_token(header)


class TestInvitationTokens:

    def test_unique_and_recognized(self):
        first = create_invitation_token()
        second = create_invitation_token()

        assert first != second
        assert is_invitation_token(first)

    def test_session_token_is_not_an_invitation(self):
        assert not is_invitation_token(create_access_token(uuid4(), "a@example.com", "A"))

    def test_foreign_signature(self):
        forged = jwt.encode({"type": "invitation"}, settings.jwt_secret + "x", algorithm="HS256")

        assert not is_invitation_token(forged)
        assert not is_invitation_token("garbage")
