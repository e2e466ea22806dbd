"""SQLAlchemy implementation of Post repository."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.post import Post, PostStatus
from infrastructure.database.models import PostModel, PostTagModel


class SQLAlchemyPostRepository:
    """SQLAlchemy implementation of IPostRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, id: UUID) -> bool:
        """Check whether a post exists."""
        result = await self._session.execute(select(PostModel.id).where(PostModel.id == id))
        return result.scalar_one_or_none() is not None

    async def get_existing_ids(self, ids: list[UUID]) -> set[UUID]:
        """Subset of the given IDs that refer to existing posts."""
        if not ids:
            return set()
        result = await self._session.execute(select(PostModel.id).where(PostModel.id.in_(ids)))
        return set(result.scalars())

    async def get_many(self, ids: list[UUID]) -> list[Post]:
        """Get the posts that exist among the given IDs, newest first."""
        if not ids:
            return []
        stmt = (
            select(PostModel)
            .where(PostModel.id.in_(ids))
            .order_by(PostModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_tag_set(self, post_id: UUID) -> set[UUID]:
        """IDs of the tags currently attached to a post."""
        stmt = select(PostTagModel.tag_id).where(PostTagModel.post_id == post_id)
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def set_tag_set(
        self, post_id: UUID, tag_ids: set[UUID]
    ) -> tuple[set[UUID], set[UUID]]:
        """Replace the post's association rows with exactly ``tag_ids``.

        Returns the ``(removed, added)`` tag IDs this call actually changed,
        measured against the rows present at write time.
        """
        current = await self.get_tag_set(post_id)

        removed = current - tag_ids
        if removed:
            await self._session.execute(
                delete(PostTagModel).where(
                    PostTagModel.post_id == post_id,
                    PostTagModel.tag_id.in_(removed),
                )
            )

        added = tag_ids - current
        for tag_id in added:
            self._session.add(PostTagModel(post_id=post_id, tag_id=tag_id))

        await self._session.flush()
        return removed, added

    def _to_entity(self, model: PostModel) -> Post:
        """Convert ORM model to domain entity."""
        return Post(
            id=model.id,
            title=model.title,
            status=PostStatus(model.status),
            created_at=model.created_at,
        )
