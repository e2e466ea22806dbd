"""SQLAlchemy implementation of Tag repository."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from domain.entities.tag import Tag
from domain.entities.tag_reports import TagSearchCriteria
from infrastructure.database.models import PostTagModel, TagModel

_SORT_COLUMNS: dict[str, Any] = {
    "name": func.lower(TagModel.name),
    "usage": TagModel.usage_count,
    "created": TagModel.created_at,
    "updated": TagModel.updated_at,
}


class SQLAlchemyTagRepository:
    """SQLAlchemy implementation of ITagRepository.

    Counter changes are issued as single UPDATE statements evaluated by the
    database, and every tag read refreshes the identity map so those
    changes are visible within the same session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _select() -> Select[tuple[TagModel]]:
        return select(TagModel).execution_options(populate_existing=True)

    async def _one(self, stmt: Select[tuple[TagModel]]) -> Tag | None:
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def _many(self, stmt: Select[tuple[TagModel]]) -> list[Tag]:
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get(self, id: UUID) -> Tag | None:
        """Get a tag by ID."""
        return await self._one(self._select().where(TagModel.id == id))

    async def get_for_update(self, id: UUID) -> Tag | None:
        """Get a tag by ID with a row lock (no-op on SQLite)."""
        return await self._one(self._select().where(TagModel.id == id).with_for_update())

    async def get_many(self, ids: list[UUID]) -> list[Tag]:
        """Get the tags that exist among the given IDs."""
        if not ids:
            return []
        return await self._many(self._select().where(TagModel.id.in_(ids)))

    async def get_by_name(self, name: str) -> Tag | None:
        """Get a tag by exact name."""
        return await self._one(self._select().where(TagModel.name == name))

    async def get_by_name_ci(self, name: str) -> Tag | None:
        """Get a tag by case-insensitive name; both sides fold through lower()."""
        stmt = (
            self._select()
            .where(func.lower(TagModel.name) == func.lower(name))
            .order_by(TagModel.created_at)
            .limit(1)
        )
        return await self._one(stmt)

    async def get_by_slug(self, slug: str) -> Tag | None:
        """Get a tag by slug."""
        return await self._one(self._select().where(TagModel.slug == slug))

    async def get_all(self) -> list[Tag]:
        """Get all tags ordered by name."""
        return await self._many(self._select().order_by(TagModel.name))

    async def search_by_name(self, keyword: str, limit: int | None = None) -> list[Tag]:
        """Case-insensitive containment match on name, most used first."""
        stmt = (
            self._select()
            .where(func.lower(TagModel.name).contains(keyword.lower(), autoescape=True))
            .order_by(TagModel.usage_count.desc(), TagModel.name)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._many(stmt)

    async def search(self, criteria: TagSearchCriteria) -> list[Tag]:
        """Tags matching every filter in ``criteria``, in its order."""
        stmt = self._select()
        if criteria.name:
            stmt = stmt.where(
                func.lower(TagModel.name).contains(criteria.name.lower(), autoescape=True)
            )
        if criteria.description:
            stmt = stmt.where(
                func.lower(TagModel.description).contains(
                    criteria.description.lower(), autoescape=True
                )
            )
        if criteria.min_usage is not None:
            stmt = stmt.where(TagModel.usage_count >= criteria.min_usage)
        if criteria.max_usage is not None:
            stmt = stmt.where(TagModel.usage_count <= criteria.max_usage)
        if criteria.has_color is True:
            stmt = stmt.where(TagModel.color.is_not(None))
        elif criteria.has_color is False:
            stmt = stmt.where(TagModel.color.is_(None))

        column = _SORT_COLUMNS.get(criteria.sort_by, _SORT_COLUMNS["name"])
        order = column.asc() if criteria.ascending else column.desc()
        return await self._many(stmt.order_by(order, TagModel.name))

    async def get_used(self) -> list[Tag]:
        """Tags attached to at least one post, most used first."""
        stmt = (
            self._select()
            .where(TagModel.usage_count > 0)
            .order_by(TagModel.usage_count.desc(), TagModel.name)
        )
        return await self._many(stmt)

    async def get_by_usage_range(self, min_usage: int, max_usage: int | None) -> list[Tag]:
        """Tags whose usage_count lies in [min_usage, max_usage]."""
        stmt = self._select().where(TagModel.usage_count >= min_usage)
        if max_usage is not None:
            stmt = stmt.where(TagModel.usage_count <= max_usage)
        return await self._many(stmt.order_by(TagModel.usage_count.desc(), TagModel.name))

    async def get_created_since(self, since: datetime, limit: int) -> list[Tag]:
        """Tags created after ``since``, newest first."""
        stmt = (
            self._select()
            .where(TagModel.created_at > since)
            .order_by(TagModel.created_at.desc())
            .limit(limit)
        )
        return await self._many(stmt)

    async def get_updated_since(self, since: datetime, limit: int) -> list[Tag]:
        """Tags updated after ``since``, most recent first."""
        stmt = (
            self._select()
            .where(TagModel.updated_at > since)
            .order_by(TagModel.updated_at.desc())
            .limit(limit)
        )
        return await self._many(stmt)

    async def get_for_post(self, post_id: UUID) -> list[Tag]:
        """Get all tags attached to a post."""
        stmt = (
            self._select()
            .join(PostTagModel, TagModel.id == PostTagModel.tag_id)
            .where(PostTagModel.post_id == post_id)
            .order_by(TagModel.name)
        )
        return await self._many(stmt)

    async def get_related(self, tag_id: UUID, limit: int) -> list[tuple[Tag, int]]:
        """Tags co-occurring with ``tag_id`` and their shared post counts."""
        anchor = aliased(PostTagModel)
        shared = func.count().label("shared")
        stmt = (
            select(TagModel, shared)
            .join(PostTagModel, PostTagModel.tag_id == TagModel.id)
            .join(anchor, anchor.post_id == PostTagModel.post_id)
            .where(anchor.tag_id == tag_id, TagModel.id != tag_id)
            .group_by(TagModel.id)
            .order_by(shared.desc(), TagModel.name)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [(self._to_entity(model), count) for model, count in result]

    async def create(self, tag: Tag) -> Tag:
        """Create a new tag."""
        model = self._to_model(tag)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, tag: Tag) -> Tag:
        """Persist field edits. usage_count is left to the counter methods."""
        stmt = self._select().where(TagModel.id == tag.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Tag {tag.id} not found")

        model.name = tag.name
        model.slug = tag.slug
        model.description = tag.description
        model.color = tag.color
        model.updated_at = tag.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a tag together with any association rows left on it."""
        await self._session.execute(delete(PostTagModel).where(PostTagModel.tag_id == id))
        result = await self._session.execute(delete(TagModel).where(TagModel.id == id))
        await self._session.flush()
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def get_post_ids(self, tag_id: UUID) -> set[UUID]:
        """IDs of posts associated with a tag."""
        stmt = select(PostTagModel.post_id).where(PostTagModel.tag_id == tag_id)
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def count_posts(self, tag_id: UUID) -> int:
        """Number of association rows for a tag."""
        stmt = select(func.count()).select_from(PostTagModel).where(PostTagModel.tag_id == tag_id)
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def link(self, tag_id: UUID, post_id: UUID) -> bool:
        """Attach a post to a tag; False if already attached."""
        stmt = select(PostTagModel).where(
            PostTagModel.tag_id == tag_id,
            PostTagModel.post_id == post_id,
        )
        result = await self._session.execute(stmt)
        if result.scalar_one_or_none():
            return False

        self._session.add(PostTagModel(tag_id=tag_id, post_id=post_id))
        await self._session.flush()
        return True

    async def unlink(self, tag_id: UUID, post_id: UUID) -> bool:
        """Detach a post from a tag; False if it was not attached."""
        stmt = delete(PostTagModel).where(
            PostTagModel.tag_id == tag_id,
            PostTagModel.post_id == post_id,
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def increment_usage(self, tag_id: UUID, now: datetime) -> None:
        """UPDATE tags SET usage_count = usage_count + 1."""
        stmt = (
            update(TagModel)
            .where(TagModel.id == tag_id)
            .values(usage_count=TagModel.usage_count + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    async def decrement_usage(self, tag_id: UUID, now: datetime) -> None:
        """UPDATE tags SET usage_count = usage_count - 1 WHERE usage_count > 0."""
        stmt = (
            update(TagModel)
            .where(TagModel.id == tag_id, TagModel.usage_count > 0)
            .values(usage_count=TagModel.usage_count - 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    async def set_usage(self, tag_id: UUID, count: int, now: datetime) -> None:
        """Overwrite usage_count with a recomputed value."""
        stmt = (
            update(TagModel)
            .where(TagModel.id == tag_id)
            .values(usage_count=count, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    def _to_entity(self, model: TagModel) -> Tag:
        """Convert ORM model to domain entity."""
        return Tag(
            id=model.id,
            name=model.name,
            slug=model.slug,
            description=model.description,
            color=model.color,
            usage_count=model.usage_count,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Tag) -> TagModel:
        """Convert domain entity to ORM model."""
        return TagModel(
            id=entity.id,
            name=entity.name,
            slug=entity.slug,
            description=entity.description,
            color=entity.color,
            usage_count=entity.usage_count,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
