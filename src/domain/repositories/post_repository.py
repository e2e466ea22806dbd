"""Post repository protocol (the post store the tag core depends on)."""

from typing import Protocol
from uuid import UUID

from domain.entities.post import Post


class IPostRepository(Protocol):
    """Repository interface for Post entities."""

    async def exists(self, id: UUID) -> bool:
        """Check whether a post exists."""
        ...

    async def get_existing_ids(self, ids: list[UUID]) -> set[UUID]:
        """Subset of the given IDs that refer to existing posts."""
        ...

    async def get_many(self, ids: list[UUID]) -> list[Post]:
        """Get the posts that exist among the given IDs, newest first."""
        ...

    async def get_tag_set(self, post_id: UUID) -> set[UUID]:
        """IDs of the tags currently attached to a post."""
        ...

    async def set_tag_set(
        self, post_id: UUID, tag_ids: set[UUID]
    ) -> tuple[set[UUID], set[UUID]]:
        """Replace the post's tag set with exactly ``tag_ids``.

        Returns the ``(removed, added)`` tag IDs actually changed.
        """
        ...
