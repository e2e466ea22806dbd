"""Association editor: binds and unbinds posts and tags."""

from collections.abc import Callable
from uuid import UUID

import structlog

from core.clock import Clock, utcnow
from core.exceptions import PostNotFoundError, TagNotFoundError, ValidationError
from domain.entities.post import Post, PostStatus
from domain.entities.tag import Tag
from domain.entities.tag_reports import BatchAssociationResult, BatchItemFailure
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.usage_service import UsageService

logger = structlog.get_logger()

SKIP_POST_NOT_FOUND = "post not found"
SKIP_ALREADY_ASSOCIATED = "already associated"
SKIP_NOT_ASSOCIATED = "not associated"
SKIP_DUPLICATE_ID = "duplicate id in request"


class AssociationService:
    """Service layer for post<->tag associations.

    Every association change and the matching usage_count change happen in
    one unit of work, after the affected tag rows have been locked.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        usage_service: UsageService | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._usage = usage_service or UsageService(uow_factory, clock=clock)

    # --- Single post, single tag ---

    async def add_post_to_tag(self, tag_id: UUID, post_id: UUID) -> bool:
        """Attach a post to a tag. Returns False if it was already attached."""
        async with self._uow_factory() as uow:
            await self._lock_tag(uow, tag_id)
            if not await uow.posts.exists(post_id):
                raise PostNotFoundError(str(post_id))

            created = await uow.tags.link(tag_id, post_id)
            if created:
                await self._usage.increment(uow, tag_id)
            await uow.commit()

        logger.debug(
            "post_tag_added" if created else "post_tag_already_present",
            tag_id=str(tag_id),
            post_id=str(post_id),
        )
        return created

    async def remove_post_from_tag(self, tag_id: UUID, post_id: UUID) -> bool:
        """Detach a post from a tag. Returns False if it was not attached."""
        async with self._uow_factory() as uow:
            await self._lock_tag(uow, tag_id)
            if not await uow.posts.exists(post_id):
                raise PostNotFoundError(str(post_id))

            removed = await uow.tags.unlink(tag_id, post_id)
            if removed:
                await self._usage.decrement(uow, tag_id)
            await uow.commit()

        logger.debug(
            "post_tag_removed" if removed else "post_tag_not_present",
            tag_id=str(tag_id),
            post_id=str(post_id),
        )
        return removed

    # --- Whole tag set of one post ---

    async def set_tags_for_post(self, post_id: UUID, tag_ids: list[UUID]) -> list[Tag]:
        """Replace a post's tag set.

        All-or-nothing: the post and every listed tag are checked before any
        association or counter is touched.
        """
        wanted = list(dict.fromkeys(tag_ids))
        async with self._uow_factory() as uow:
            if not await uow.posts.exists(post_id):
                raise PostNotFoundError(str(post_id))

            found_ids = {tag.id for tag in await uow.tags.get_many(wanted)}
            for tag_id in wanted:
                if tag_id not in found_ids:
                    raise TagNotFoundError(str(tag_id))

            current = await uow.posts.get_tag_set(post_id)
            target = set(wanted)

            # Lock in a stable order so concurrent editors cannot deadlock
            for tag_id in sorted(current ^ target, key=str):
                await uow.tags.get_for_update(tag_id)

            # Counters follow the rows actually written, not the earlier read
            removed, added = await uow.posts.set_tag_set(post_id, target)
            for tag_id in removed:
                await self._usage.decrement(uow, tag_id)
            for tag_id in added:
                await self._usage.increment(uow, tag_id)

            tags = await uow.tags.get_for_post(post_id)
            await uow.commit()

        logger.info(
            "post_tags_set",
            post_id=str(post_id),
            added=len(added),
            removed=len(removed),
            total=len(target),
        )
        return tags  # type: ignore[no-any-return]

    # --- Many posts, one tag ---

    async def add_posts_to_tag(
        self, tag_id: UUID, post_ids: list[UUID]
    ) -> BatchAssociationResult:
        """Attach many posts to a tag, skipping the ones that cannot be added.

        Only an unknown tag or an empty id list aborts the whole batch.
        """
        if not post_ids:
            raise ValidationError("Post ID list cannot be empty", field="post_ids")

        async with self._uow_factory() as uow:
            await self._lock_tag(uow, tag_id)
            existing = await uow.posts.get_existing_ids(post_ids)
            linked = await uow.tags.get_post_ids(tag_id)

            skipped: list[BatchItemFailure] = []
            count = 0
            seen: set[UUID] = set()
            for post_id in post_ids:
                if post_id in seen:
                    skipped.append(BatchItemFailure(post_id, SKIP_DUPLICATE_ID))
                    continue
                seen.add(post_id)
                if post_id not in existing:
                    skipped.append(BatchItemFailure(post_id, SKIP_POST_NOT_FOUND))
                    continue
                if post_id in linked:
                    skipped.append(BatchItemFailure(post_id, SKIP_ALREADY_ASSOCIATED))
                    continue

                await uow.tags.link(tag_id, post_id)
                await self._usage.increment(uow, tag_id)
                count += 1

            await uow.commit()

        self._log_batch("posts_added_to_tag", tag_id, post_ids, count, skipped)
        return BatchAssociationResult(
            tag_id=tag_id, requested=len(post_ids), count=count, skipped=skipped
        )

    async def remove_posts_from_tag(
        self, tag_id: UUID, post_ids: list[UUID]
    ) -> BatchAssociationResult:
        """Detach many posts from a tag, skipping the ones that cannot be removed."""
        if not post_ids:
            raise ValidationError("Post ID list cannot be empty", field="post_ids")

        async with self._uow_factory() as uow:
            await self._lock_tag(uow, tag_id)
            existing = await uow.posts.get_existing_ids(post_ids)
            linked = await uow.tags.get_post_ids(tag_id)

            skipped: list[BatchItemFailure] = []
            count = 0
            seen: set[UUID] = set()
            for post_id in post_ids:
                if post_id in seen:
                    skipped.append(BatchItemFailure(post_id, SKIP_DUPLICATE_ID))
                    continue
                seen.add(post_id)
                if post_id not in existing:
                    skipped.append(BatchItemFailure(post_id, SKIP_POST_NOT_FOUND))
                    continue
                if post_id not in linked:
                    skipped.append(BatchItemFailure(post_id, SKIP_NOT_ASSOCIATED))
                    continue

                await uow.tags.unlink(tag_id, post_id)
                await self._usage.decrement(uow, tag_id)
                count += 1

            await uow.commit()

        self._log_batch("posts_removed_from_tag", tag_id, post_ids, count, skipped)
        return BatchAssociationResult(
            tag_id=tag_id, requested=len(post_ids), count=count, skipped=skipped
        )

    # --- Reads ---

    async def get_posts_for_tag(self, tag_id: UUID, status: str | None = None) -> list[Post]:
        """Posts attached to a tag, optionally filtered by status.

        An unrecognised status filter is logged and ignored.
        """
        desired: PostStatus | None = None
        if status:
            try:
                desired = PostStatus(status.lower())
            except ValueError:
                logger.warning("invalid_post_status_filter", status=status)

        async with self._uow_factory() as uow:
            if not await uow.tags.get(tag_id):
                raise TagNotFoundError(str(tag_id))
            post_ids = await uow.tags.get_post_ids(tag_id)
            posts = await uow.posts.get_many(list(post_ids))

        if desired is not None:
            posts = [post for post in posts if post.status == desired]
        return posts  # type: ignore[no-any-return]

    # --- Helpers ---

    async def _lock_tag(self, uow: IUnitOfWork, tag_id: UUID) -> Tag:
        tag = await uow.tags.get_for_update(tag_id)
        if not tag:
            raise TagNotFoundError(str(tag_id))
        return tag  # type: ignore[no-any-return]

    @staticmethod
    def _log_batch(
        event: str,
        tag_id: UUID,
        post_ids: list[UUID],
        count: int,
        skipped: list[BatchItemFailure],
    ) -> None:
        if skipped:
            logger.warning(
                f"{event}_with_skips",
                tag_id=str(tag_id),
                requested=len(post_ids),
                count=count,
                skipped=[{"post_id": str(s.item_id), "reason": s.reason} for s in skipped],
            )
        else:
            logger.info(event, tag_id=str(tag_id), requested=len(post_ids), count=count)
