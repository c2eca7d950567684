"""
Shared Todo Backend — Application Package Initializer
=====================================================

What: Marks the `sharedtodo` directory as a Python package.
Who:  Imported by uvicorn (`sharedtodo.main:app`), Alembic and pytest.

Architecture Note:
    The backend is a layered REST service for shared notes and tasks:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │   Policy  │  Services (Business)    │  ← permission predicates, workflows
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes authenticate the caller and delegate; services load entities
    through access-filtered queries, consult `sharedtodo.policy` before any
    mutation, and return response schemas.
"""

__version__ = "1.0.0"
