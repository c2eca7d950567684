"""
Shared Todo Backend — Invitation Endpoint Tests
================================================

What:  The token-addressed invitation lifecycle: read, accept, decline,
       expiry.

What we test:
    ✅ Public read shows note, inviter, role and expiry
    ✅ Accept requires a matching account email and creates the membership
    ✅ Accepting deletes the invitation
    ✅ Expired invitations cannot be read or accepted, but can be declined
    ✅ Malformed and unknown tokens
    ✅ Expired invitations are replaced by a new invite
    ✅ A failed accept leaves neither the membership nor the deletion behind
    ✅ Tokens never reach the logs in full
"""

import logging
from datetime import timedelta

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sharedtodo.models.collaborator import NoteCollaborator
from sharedtodo.models.common import utcnow
from sharedtodo.models.invitation import Invitation
from sharedtodo.security import create_invitation_token

API = "/api/v1"


@pytest.fixture
def invite_email(test_client):
    """Factory: invite an unregistered email and return the invitation body."""

    async def _invite(owner, note_id: str, email: str = "dave@example.com", role: str = "editor") -> dict:
        response = await test_client.post(
            f"{API}/notes/{note_id}/invite",
            json={"email": email, "role": role},
            headers=owner.headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["invitation"]

    return _invite


async def expire(database, token: str) -> None:
    async with database.session_factory() as session:
        await session.execute(
            update(Invitation)
            .where(Invitation.token == token)
            .values(expires_at=utcnow() - timedelta(days=1))
        )
        await session.commit()


async def count_rows(database, model) -> int:
    async with database.session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


class TestReadInvitation:

    @pytest.mark.asyncio
    async def test_public_read(self, test_client, alice, create_note, invite_email):
        note = await create_note(alice, "Team board", "details")
        invitation = await invite_email(alice, note["id"])

        response = await test_client.get(f"{API}/invitations/{invitation['token']}")

        assert response.status_code == 200
        data = response.json()["data"]["invitation"]
        assert data["email"] == "dave@example.com"
        assert data["role"] == "editor"
        assert data["note"] == {"id": note["id"], "title": "Team board", "content": "details"}
        assert data["invitedBy"]["id"] == alice.id
        assert "token" not in data

    @pytest.mark.asyncio
    async def test_malformed_token(self, test_client):
        response = await test_client.get(f"{API}/invitations/garbage")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_well_formed_but_unknown_token(self, test_client):
        response = await test_client.get(f"{API}/invitations/{create_invitation_token()}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVITATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_expired_invitation(self, test_client, database, alice, create_note, invite_email):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])
        await expire(database, invitation["token"])

        response = await test_client.get(f"{API}/invitations/{invitation['token']}")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVITATION_EXPIRED"


class TestAcceptInvitation:

    @pytest.mark.asyncio
    async def test_accept_creates_membership(
        self, test_client, alice, register, create_note, invite_email
    ):
        note = await create_note(alice, "Team board")
        invitation = await invite_email(alice, note["id"], "Dave@Example.com", "editor")
        dave = await register("dave@example.com", "Dave")

        response = await test_client.post(
            f"{API}/invitations/{invitation['token']}/accept", headers=dave.headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["message"] == "Invitation accepted successfully"
        assert data["collaborator"]["role"] == "editor"
        assert data["collaborator"]["user"]["id"] == dave.id
        assert data["collaborator"]["note"] == {"id": note["id"], "title": "Team board"}

        detail = await test_client.get(f"{API}/notes/{note['id']}", headers=dave.headers)
        assert detail.status_code == 200
        assert detail.json()["data"]["role"] == "editor"

        consumed = await test_client.get(f"{API}/invitations/{invitation['token']}")
        assert consumed.status_code == 404

    @pytest.mark.asyncio
    async def test_accept_requires_authentication(self, test_client, alice, create_note, invite_email):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])

        response = await test_client.post(f"{API}/invitations/{invitation['token']}/accept")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_email_mismatch(self, test_client, alice, bob, create_note, invite_email):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])

        response = await test_client.post(
            f"{API}/invitations/{invitation['token']}/accept", headers=bob.headers
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "EMAIL_MISMATCH"
        still_pending = await test_client.get(f"{API}/invitations/{invitation['token']}")
        assert still_pending.status_code == 200

    @pytest.mark.asyncio
    async def test_expired_cannot_be_accepted(
        self, test_client, database, alice, register, create_note, invite_email
    ):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])
        dave = await register("dave@example.com", "Dave")
        await expire(database, invitation["token"])

        response = await test_client.post(
            f"{API}/invitations/{invitation['token']}/accept", headers=dave.headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVITATION_EXPIRED"

    @pytest.mark.asyncio
    async def test_already_member_removes_stale_invitation(
        self, test_client, alice, register, create_note, invite_email
    ):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])
        dave = await register("dave@example.com", "Dave")
        # Now registered, so this invite adds dave directly
        await test_client.post(
            f"{API}/notes/{note['id']}/invite",
            json={"email": dave.email},
            headers=alice.headers,
        )

        response = await test_client.post(
            f"{API}/invitations/{invitation['token']}/accept", headers=dave.headers
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ALREADY_COLLABORATOR"
        gone = await test_client.get(f"{API}/invitations/{invitation['token']}")
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_second_accept_not_found(
        self, test_client, alice, register, create_note, invite_email
    ):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])
        dave = await register("dave@example.com", "Dave")
        url = f"{API}/invitations/{invitation['token']}/accept"
        first = await test_client.post(url, headers=dave.headers)
        assert first.status_code == 200

        response = await test_client.post(url, headers=dave.headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVITATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_accept_is_atomic(
        self, test_client, database, monkeypatch, alice, register, create_note, invite_email
    ):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])
        dave = await register("dave@example.com", "Dave")
        original_delete = AsyncSession.delete

        async def failing_delete(session, instance):
            if isinstance(instance, Invitation):
                raise SQLAlchemyError("invitation delete failed")
            return await original_delete(session, instance)

        monkeypatch.setattr(AsyncSession, "delete", failing_delete)
        response = await test_client.post(
            f"{API}/invitations/{invitation['token']}/accept", headers=dave.headers
        )
        monkeypatch.undo()

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "DATABASE_ERROR"
        assert await count_rows(database, NoteCollaborator) == 0
        assert await count_rows(database, Invitation) == 1
        still_pending = await test_client.get(f"{API}/invitations/{invitation['token']}")
        assert still_pending.status_code == 200


class TestDeclineInvitation:

    @pytest.mark.asyncio
    async def test_decline_deletes_invitation(self, test_client, alice, create_note, invite_email):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])

        response = await test_client.delete(f"{API}/invitations/{invitation['token']}")

        assert response.status_code == 200
        assert response.json()["data"] == {"message": "Invitation declined successfully"}
        gone = await test_client.get(f"{API}/invitations/{invitation['token']}")
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_expired_invitation_can_be_declined(
        self, test_client, database, alice, create_note, invite_email
    ):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])
        await expire(database, invitation["token"])

        response = await test_client.delete(f"{API}/invitations/{invitation['token']}")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_expired_invitation_replaced_on_reinvite(
        self, test_client, database, alice, create_note, invite_email
    ):
        note = await create_note(alice)
        old = await invite_email(alice, note["id"])
        await expire(database, old["token"])

        fresh = await invite_email(alice, note["id"])

        assert fresh["token"] != old["token"]
        replaced = await test_client.get(f"{API}/invitations/{old['token']}")
        assert replaced.status_code == 404

    @pytest.mark.asyncio
    async def test_deleting_note_drops_invitations(self, test_client, alice, create_note, invite_email):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])

        await test_client.delete(f"{API}/notes/{note['id']}", headers=alice.headers)

        response = await test_client.get(f"{API}/invitations/{invitation['token']}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_second_decline_not_found(self, test_client, alice, create_note, invite_email):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])
        await test_client.delete(f"{API}/invitations/{invitation['token']}")

        response = await test_client.delete(f"{API}/invitations/{invitation['token']}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVITATION_NOT_FOUND"


class TestTokenRedaction:

    @pytest.mark.asyncio
    async def test_token_never_logged_in_full(
        self, test_client, caplog, alice, bob, create_note, invite_email
    ):
        note = await create_note(alice)
        invitation = await invite_email(alice, note["id"])
        token = invitation["token"]
        caplog.set_level(logging.INFO)

        await test_client.get(f"{API}/invitations/{token}")
        await test_client.get(f"{API}/invitations/{token}x")
        await test_client.post(f"{API}/invitations/{token}/accept", headers=bob.headers)
        await test_client.delete(f"{API}/invitations/{token}")

        messages = [record.getMessage() for record in caplog.records]
        assert any(f"/invitations/{token[:8]}…" in message for message in messages)
        for record in caplog.records:
            assert token not in record.getMessage()
            assert token not in str(getattr(record, "path", ""))
