"""
ORM models. Importing this package registers every table with `Base.metadata`
and lets string-based relationships resolve.
"""

from sharedtodo.models.common import CollaboratorRole, TaskPriority, TaskStatus
from sharedtodo.models.user import User
from sharedtodo.models.note import Note
from sharedtodo.models.collaborator import NoteCollaborator
from sharedtodo.models.task import Task
from sharedtodo.models.invitation import Invitation

__all__ = [
    "CollaboratorRole",
    "Invitation",
    "Note",
    "NoteCollaborator",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "User",
]
