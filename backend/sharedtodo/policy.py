"""
Shared Todo Backend — Authorization Policy
===========================================

What:  The single set of permission rules for notes and tasks.
How:   Two faces of the same rules:
       - Pure predicates over a loaded note (owner id + collaborator rows),
         used before mutations and for response shaping.
       - SQL clauses expressing the same rules, used inside fetch queries so
         that an entity the caller may not see is never loaded at all.
Who:   Every service that reads or mutates notes, collaborators or tasks.

Rules (role set is flat, owner always wins):

    Action          Owner   admin   editor  viewer
    ─────────────── ─────── ─────── ─────── ───────
    VIEW            yes     yes     yes     yes
    EDIT            yes     yes     yes     no
    ADMINISTER      yes     yes     no      no      (invite, remove, role change)
    DELETE (note)   yes     no      no      no

    Tasks: the task author or its assignee may edit; only the task author may
    delete. Both additionally require the task's note to be visible.
"""

import enum
from typing import Iterable, Optional, Protocol, Sequence
from uuid import UUID

from sqlalchemy import ColumnElement, or_

from sharedtodo.models.collaborator import NoteCollaborator
from sharedtodo.models.common import CollaboratorRole
from sharedtodo.models.note import Note
from sharedtodo.models.task import Task

OWNER_ROLE = "owner"


class NoteAction(str, enum.Enum):
    VIEW = "view"
    EDIT = "edit"
    ADMINISTER = "administer"
    DELETE = "delete"


# Collaborator roles granting each action; empty means owner only
ACTION_ROLES = {
    NoteAction.VIEW: frozenset(role.value for role in CollaboratorRole),
    NoteAction.EDIT: frozenset({CollaboratorRole.EDITOR.value, CollaboratorRole.ADMIN.value}),
    NoteAction.ADMINISTER: frozenset({CollaboratorRole.ADMIN.value}),
    NoteAction.DELETE: frozenset(),
}


class _Membership(Protocol):
    user_id: UUID
    role: str


class _NoteLike(Protocol):
    author_id: UUID
    collaborators: Sequence[_Membership]


class _TaskLike(Protocol):
    author_id: UUID
    assignee_id: Optional[UUID]


# ══════════════════════════════════════════════════════════════════════════
# Pure predicates
# ══════════════════════════════════════════════════════════════════════════

def role_of(user_id: UUID, note: _NoteLike) -> Optional[str]:
    """'owner', the collaborator role, or None when the user has no access."""
    if note.author_id == user_id:
        return OWNER_ROLE
    for membership in note.collaborators:
        if membership.user_id == user_id:
            return membership.role
    return None


def can(user_id: UUID, note: _NoteLike, action: NoteAction) -> bool:
    role = role_of(user_id, note)
    if role is None:
        return False
    if role == OWNER_ROLE:
        return True
    return role in ACTION_ROLES[action]


def can_view(user_id: UUID, note: _NoteLike) -> bool:
    return can(user_id, note, NoteAction.VIEW)


def can_edit(user_id: UUID, note: _NoteLike) -> bool:
    return can(user_id, note, NoteAction.EDIT)


def can_administer(user_id: UUID, note: _NoteLike) -> bool:
    return can(user_id, note, NoteAction.ADMINISTER)


def can_delete_note(user_id: UUID, note: _NoteLike) -> bool:
    return can(user_id, note, NoteAction.DELETE)


def can_edit_task(user_id: UUID, task: _TaskLike) -> bool:
    return task.author_id == user_id or (
        task.assignee_id is not None and task.assignee_id == user_id
    )


def can_delete_task(user_id: UUID, task: _TaskLike) -> bool:
    return task.author_id == user_id


def is_note_member(note: _NoteLike, user_id: UUID) -> bool:
    """Owner or collaborator: the set of valid task assignees."""
    return role_of(user_id, note) is not None


def member_ids(note: _NoteLike) -> Iterable[UUID]:
    yield note.author_id
    for membership in note.collaborators:
        yield membership.user_id


# ══════════════════════════════════════════════════════════════════════════
# SQL access predicates
# ══════════════════════════════════════════════════════════════════════════

def note_access_clause(user_id: UUID, action: NoteAction = NoteAction.VIEW) -> ColumnElement[bool]:
    """
    WHERE clause: owner OR exists a collaborator row with a granting role.

    Used inside fetch queries so that invisible notes are indistinguishable
    from missing ones.
    """
    owner = Note.author_id == user_id
    roles = ACTION_ROLES[action]
    if not roles:
        return owner
    return or_(
        owner,
        Note.collaborators.any(
            (NoteCollaborator.user_id == user_id) & NoteCollaborator.role.in_(sorted(roles))
        ),
    )


def task_visibility_clause(user_id: UUID) -> ColumnElement[bool]:
    """A task is visible exactly when its note is."""
    return Task.note.has(note_access_clause(user_id, NoteAction.VIEW))
