"""Shared column helpers and enumerations for the ORM models."""

import enum
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize to an aware UTC datetime.

    SQLite hands back naive values even for `DateTime(timezone=True)` columns
    and drops the offset on write, so naive means UTC and aware input is
    converted before it is stored.
    """
    if value is None:
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CollaboratorRole(str, enum.Enum):
    VIEWER = "viewer"
    EDITOR = "editor"
    ADMIN = "admin"


class TaskStatus(str, enum.Enum):
    """Declaration order is the listing bucket order."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class TaskPriority(str, enum.Enum):
    """Declaration order is ascending urgency."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
