"""
Shared Todo Backend — Access Policy Unit Tests
===============================================

What:  The role → action table and the task rules, without a database.
How:   Plain objects stand in for notes and tasks; the predicates only read
       author_id, collaborators[].user_id/role and assignee_id.
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from sharedtodo.policy import (
    NoteAction,
    OWNER_ROLE,
    can,
    can_administer,
    can_delete_note,
    can_delete_task,
    can_edit,
    can_edit_task,
    can_view,
    is_note_member,
    member_ids,
    role_of,
)

OWNER = uuid4()
VIEWER = uuid4()
EDITOR = uuid4()
ADMIN = uuid4()
STRANGER = uuid4()

NOTE = SimpleNamespace(
    author_id=OWNER,
    collaborators=[
        SimpleNamespace(user_id=VIEWER, role="viewer"),
        SimpleNamespace(user_id=EDITOR, role="editor"),
        SimpleNamespace(user_id=ADMIN, role="admin"),
    ],
)


class TestRoleOf:

    def test_owner(self):
        assert role_of(OWNER, NOTE) == OWNER_ROLE

    def test_collaborator(self):
        assert role_of(EDITOR, NOTE) == "editor"

    def test_stranger(self):
        assert role_of(STRANGER, NOTE) is None


class TestNoteActions:

    @pytest.mark.parametrize(
        "user,action,allowed",
        [
            (OWNER, NoteAction.VIEW, True),
            (OWNER, NoteAction.EDIT, True),
            (OWNER, NoteAction.ADMINISTER, True),
            (OWNER, NoteAction.DELETE, True),
            (ADMIN, NoteAction.VIEW, True),
            (ADMIN, NoteAction.EDIT, True),
            (ADMIN, NoteAction.ADMINISTER, True),
            (ADMIN, NoteAction.DELETE, False),
            (EDITOR, NoteAction.VIEW, True),
            (EDITOR, NoteAction.EDIT, True),
            (EDITOR, NoteAction.ADMINISTER, False),
            (EDITOR, NoteAction.DELETE, False),
            (VIEWER, NoteAction.VIEW, True),
            (VIEWER, NoteAction.EDIT, False),
            (VIEWER, NoteAction.ADMINISTER, False),
            (STRANGER, NoteAction.VIEW, False),
        ],
    )
    def test_matrix(self, user, action, allowed):
        assert can(user, NOTE, action) is allowed

    def test_every_member_can_view(self):
        for user in (OWNER, ADMIN, EDITOR, VIEWER):
            assert can_view(user, NOTE)
        assert not can_view(STRANGER, NOTE)

    def test_viewer_cannot_edit(self):
        assert can_edit(EDITOR, NOTE)
        assert not can_edit(VIEWER, NOTE)

    def test_only_admin_and_owner_administer(self):
        assert can_administer(ADMIN, NOTE)
        assert can_administer(OWNER, NOTE)
        assert not can_administer(EDITOR, NOTE)

    def test_only_owner_deletes_note(self):
        assert can_delete_note(OWNER, NOTE)
        assert not can_delete_note(ADMIN, NOTE)


class TestTaskRules:

    def test_author_edits_and_deletes(self):
        task = SimpleNamespace(author_id=EDITOR, assignee_id=None)
        assert can_edit_task(EDITOR, task)
        assert can_delete_task(EDITOR, task)

    def test_assignee_edits_but_cannot_delete(self):
        task = SimpleNamespace(author_id=EDITOR, assignee_id=VIEWER)
        assert can_edit_task(VIEWER, task)
        assert not can_delete_task(VIEWER, task)

    def test_note_owner_has_no_task_rights_of_their_own(self):
        task = SimpleNamespace(author_id=EDITOR, assignee_id=None)
        assert not can_edit_task(OWNER, task)
        assert not can_delete_task(OWNER, task)


class TestMembership:

    def test_members_are_owner_and_collaborators(self):
        assert set(member_ids(NOTE)) == {OWNER, VIEWER, EDITOR, ADMIN}
        assert is_note_member(NOTE, VIEWER)
        assert not is_note_member(NOTE, STRANGER)
