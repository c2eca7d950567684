"""
Shared Todo Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine/session holder, declarative base and the
       per-request session dependency.
How:   `Database` owns one async engine (connection pool) and its session
       factory. `create_app()` builds one and stores it on `app.state.database`;
       `get_db_session` pulls it from there for every request, commits on
       success and rolls back on error.
Who:   Route handlers via FastAPI's dependency injection; tests construct
       their own `Database` pointing at SQLite and pass it to `create_app()`.

Connection Pooling Strategy (PostgreSQL):
    pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600.
    SQLite URLs get the driver's default pool and no pool arguments.
"""

from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from sharedtodo.config import settings


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so that they share one metadata
    object (used by Alembic and by `Database.create_all` in tests).
    """
    pass


def _engine_kwargs(url: str, echo: bool) -> Dict[str, Any]:
    """Pool arguments only make sense for server databases."""
    kwargs: Dict[str, Any] = {"echo": echo}
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return kwargs


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # Why: SQLite ignores ON DELETE CASCADE / SET NULL unless this pragma is on,
    # and the setting is per connection, so it runs for every new DBAPI connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Persistence handle: one engine + one session factory.

    Passed explicitly into the application instead of living as a module
    global, so each app instance (and each test) owns its own pool.
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self.url = url or settings.database_url
        if echo is None:
            echo = settings.log_level == "DEBUG"
        self.engine: AsyncEngine = create_async_engine(
            self.url, **_engine_kwargs(self.url, echo)
        )
        if self.url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # expire_on_commit=False: response shaping reads attributes after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create every table known to `Base.metadata` (tests, local SQLite)."""
        # Import registers the models with Base.metadata
        import sharedtodo.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        from sqlalchemy import text

        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Gracefully closes all connections in the pool (app shutdown)."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the app's `Database`
        2. Yields it to the route handler (services flush their writes)
        3. On success: commits the transaction
        4. On error: rolls back, then re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/notes")
        async def list_notes(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
