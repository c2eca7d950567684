"""
Shared Todo Backend — Common Response Schemas
==============================================

What:  Envelope, pagination and base model shared by every endpoint.
How:   `CamelModel` turns snake_case attributes into camelCase JSON keys and
       still accepts snake_case on input (populate_by_name). FastAPI
       serializes response models by alias, so every payload is camelCase.

Envelopes:
    success  {"success": true,  "data": {...}}
    failure  {"success": false, "error": {"code", "message", "details"?}}
"""

import math
from datetime import datetime
from typing import Annotated, Any, Generic, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sharedtodo.models.common import as_utc

T = TypeVar("T")

# Input offsets are converted to UTC; naive values are taken as UTC
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope."""

    success: bool = True
    data: T


class ErrorBody(CamelModel):
    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Field-level validation errors")


class ErrorResponse(CamelModel):
    """
    Failure envelope, built by the global exception handlers.

    Example:
        {
            "success": false,
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": [{"field": "email", "message": "value is not a valid email address"}]
            }
        }
    """

    success: bool = False
    error: ErrorBody


class MessageData(CamelModel):
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Pagination
# ══════════════════════════════════════════════════════════════════════════

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class PaginationMeta(CamelModel):
    """
    Offset pagination state for list endpoints.

    Pages are 1-based. hasNext is `page < totalPages`, so page 1 of 1 (and
    page 1 of an empty result) reports neither a next nor a previous page.
    """

    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next: bool
    has_prev: bool


def build_pagination(page: int, limit: int, total: int) -> PaginationMeta:
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return PaginationMeta(
        page=page,
        limit=limit,
        total_count=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit
