"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.repositories.sqlalchemy_post_repo import SQLAlchemyPostRepository
from infrastructure.database.repositories.sqlalchemy_tag_repo import SQLAlchemyTagRepository


class SQLAlchemyUnitOfWork:
    """One database transaction shared by the tag and post repositories.

    Association rows and usage counters written through either repository
    become visible together on ``commit()``. Leaving the block without a
    commit, or with an exception, discards everything.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None
        self._tags: Optional[SQLAlchemyTagRepository] = None
        self._posts: Optional[SQLAlchemyPostRepository] = None

    @property
    def tags(self) -> SQLAlchemyTagRepository:
        if self._tags is None:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._tags

    @property
    def posts(self) -> SQLAlchemyPostRepository:
        if self._posts is None:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._posts

    async def commit(self) -> None:
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        if self._session:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        session = self._session_factory()
        self._session = session
        self._tags = SQLAlchemyTagRepository(session)
        self._posts = SQLAlchemyPostRepository(session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        session, self._session = self._session, None
        self._tags = self._posts = None
        if session is None:
            return
        try:
            if exc_type or session.in_transaction():
                # Uncommitted work never leaks into the next unit of work
                await session.rollback()
        finally:
            await session.close()
