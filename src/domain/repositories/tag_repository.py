"""Tag repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.tag import Tag
from domain.entities.tag_reports import TagSearchCriteria


class ITagRepository(Protocol):
    """Repository interface for Tag entities and the post_tags association."""

    async def get(self, id: UUID) -> Tag | None:
        """Get a tag by ID."""
        ...

    async def get_for_update(self, id: UUID) -> Tag | None:
        """Get a tag by ID, locking its row until the transaction ends."""
        ...

    async def get_many(self, ids: list[UUID]) -> list[Tag]:
        """Get the tags that exist among the given IDs."""
        ...

    async def get_by_name(self, name: str) -> Tag | None:
        """Get a tag by exact (case-sensitive) name."""
        ...

    async def get_by_name_ci(self, name: str) -> Tag | None:
        """Get a tag by case-insensitive name."""
        ...

    async def get_by_slug(self, slug: str) -> Tag | None:
        """Get a tag by slug."""
        ...

    async def get_all(self) -> list[Tag]:
        """Get all tags ordered by name."""
        ...

    async def search_by_name(self, keyword: str, limit: int | None = None) -> list[Tag]:
        """Case-insensitive containment match on name, most used first."""
        ...

    async def search(self, criteria: TagSearchCriteria) -> list[Tag]:
        """Tags matching every filter in ``criteria``, in its order."""
        ...

    async def get_used(self) -> list[Tag]:
        """Tags with usage_count > 0, most used first."""
        ...

    async def get_by_usage_range(self, min_usage: int, max_usage: int | None) -> list[Tag]:
        """Tags whose usage_count lies in [min_usage, max_usage]."""
        ...

    async def get_created_since(self, since: datetime, limit: int) -> list[Tag]:
        """Tags created after ``since``, newest first."""
        ...

    async def get_updated_since(self, since: datetime, limit: int) -> list[Tag]:
        """Tags updated after ``since``, most recent first."""
        ...

    async def get_for_post(self, post_id: UUID) -> list[Tag]:
        """Get all tags attached to a post."""
        ...

    async def get_related(self, tag_id: UUID, limit: int) -> list[tuple[Tag, int]]:
        """Tags sharing posts with ``tag_id`` and the number of shared posts."""
        ...

    async def create(self, tag: Tag) -> Tag:
        """Create a new tag."""
        ...

    async def update(self, tag: Tag) -> Tag:
        """Persist field edits (never usage_count)."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a tag and return success status."""
        ...

    async def get_post_ids(self, tag_id: UUID) -> set[UUID]:
        """IDs of posts associated with a tag."""
        ...

    async def count_posts(self, tag_id: UUID) -> int:
        """True cardinality of a tag's association set."""
        ...

    async def link(self, tag_id: UUID, post_id: UUID) -> bool:
        """Associate a post; False if the pair already existed."""
        ...

    async def unlink(self, tag_id: UUID, post_id: UUID) -> bool:
        """Remove an association; False if it did not exist."""
        ...

    async def increment_usage(self, tag_id: UUID, now: datetime) -> None:
        """Atomically add one to usage_count."""
        ...

    async def decrement_usage(self, tag_id: UUID, now: datetime) -> None:
        """Atomically subtract one from usage_count, never below zero."""
        ...

    async def set_usage(self, tag_id: UUID, count: int, now: datetime) -> None:
        """Overwrite usage_count."""
        ...
