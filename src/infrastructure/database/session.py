"""Database engine and session factory."""

from typing import Any, AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings


def _engine_options(url: str) -> dict[str, Any]:
    """Driver-specific engine arguments for ``url``."""
    if url.startswith("sqlite"):
        # Local development against a file; aiosqlite hands the connection
        # between threads.
        return {"connect_args": {"check_same_thread": False}}

    options: dict[str, Any] = {"pool_pre_ping": True, "connect_args": {}}
    # asyncpg's prepared statement cache breaks behind transaction-mode poolers
    if "pooler" in url or "pgbouncer" in url:
        options["connect_args"]["statement_cache_size"] = 0
    return options


def _unicode_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def install_sqlite_functions(engine: AsyncEngine) -> None:
    """Replace SQLite's ASCII-only lower() with Python's Unicode case folding.

    Case-insensitive name lookups then behave the same as on PostgreSQL.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _register(dbapi_conn: Any, _: Any) -> None:
        dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


engine = create_async_engine(
    settings.async_database_url,
    echo=settings.debug,
    **_engine_options(settings.async_database_url),
)
if settings.async_database_url.startswith("sqlite"):
    install_sqlite_functions(engine)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Plain session for endpoints that only check the database."""
    async with async_session_factory() as session:
        yield session
