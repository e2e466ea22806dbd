"""Merge engine: folds duplicate tags into a surviving tag."""

from collections.abc import Callable
from uuid import UUID

import structlog

from core.clock import Clock, utcnow
from core.exceptions import AppException, SelfMergeError, TagNotFoundError
from domain.entities.tag import Tag
from domain.entities.tag_reports import BatchItemFailure, BatchMergeResult
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.usage_service import UsageService

logger = structlog.get_logger()


class MergeService:
    """Service layer for merging tags."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        usage_service: UsageService | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._usage = usage_service or UsageService(uow_factory, clock=clock)
        self._clock = clock

    async def merge(self, source_id: UUID, target_id: UUID) -> Tag:
        """Move every post of ``source_id`` onto ``target_id`` and delete the source.

        Runs as one transaction: the source row is deleted last, so a failure
        part-way through rolls everything back and leaves both tags intact.
        """
        if source_id == target_id:
            raise SelfMergeError(str(source_id))

        async with self._uow_factory() as uow:
            target, transferred, source_name = await self._merge_in(uow, source_id, target_id)
            await uow.commit()

        logger.info(
            "tag_merged",
            source_id=str(source_id),
            source_name=source_name,
            target_id=str(target_id),
            target_name=target.name,
            posts_transferred=transferred,
        )
        return target

    async def batch_merge(self, source_ids: list[UUID], target_id: UUID) -> BatchMergeResult:
        """Merge several sources into one target, each in its own transaction.

        A failing source is recorded and the remaining merges still run; only
        an unknown target aborts the batch.
        """
        async with self._uow_factory() as uow:
            target = await uow.tags.get(target_id)
            if not target:
                raise TagNotFoundError(str(target_id))

        merged_names: list[str] = []
        failed: list[BatchItemFailure] = []
        total_transferred = 0

        for source_id in source_ids:
            if source_id == target_id:
                failed.append(BatchItemFailure(source_id, "same as target"))
                continue
            try:
                async with self._uow_factory() as uow:
                    target, transferred, source_name = await self._merge_in(
                        uow, source_id, target_id
                    )
                    await uow.commit()
            except AppException as exc:
                failed.append(BatchItemFailure(source_id, exc.message))
                logger.warning(
                    "tag_merge_failed",
                    source_id=str(source_id),
                    target_id=str(target_id),
                    reason=exc.message,
                )
                continue
            except Exception as exc:
                failed.append(BatchItemFailure(source_id, str(exc)))
                logger.exception(
                    "tag_merge_failed",
                    source_id=str(source_id),
                    target_id=str(target_id),
                )
                continue

            merged_names.append(source_name)
            total_transferred += transferred

        logger.info(
            "tag_batch_merge_completed",
            target_id=str(target_id),
            merged=len(merged_names),
            failed=len(failed),
            posts_transferred=total_transferred,
        )
        return BatchMergeResult(
            target_id=target_id,
            target_name=target.name,
            merged_count=len(merged_names),
            total_posts_transferred=total_transferred,
            merged_names=merged_names,
            failed_entries=failed,
        )

    async def _merge_in(
        self, uow: IUnitOfWork, source_id: UUID, target_id: UUID
    ) -> tuple[Tag, int, str]:
        """Merge within an existing UoW; returns (target, posts moved, source name)."""
        locked: dict[UUID, Tag | None] = {}
        for tag_id in sorted((source_id, target_id), key=str):
            locked[tag_id] = await uow.tags.get_for_update(tag_id)

        source = locked[source_id]
        target = locked[target_id]
        if not source:
            raise TagNotFoundError(str(source_id))
        if not target:
            raise TagNotFoundError(str(target_id))

        source_posts = await uow.tags.get_post_ids(source_id)
        target_posts = await uow.tags.get_post_ids(target_id)

        for post_id in sorted(source_posts, key=str):
            if post_id not in target_posts:
                await uow.tags.link(target_id, post_id)
                await self._usage.increment(uow, target_id)
            await uow.tags.unlink(source_id, post_id)
            await self._usage.decrement(uow, source_id)

        # Trust the association table over the incremental arithmetic
        target.usage_count = await self._usage.recompute(uow, target_id)

        now = self._clock()
        target.append_note(
            f"Merged from '{source.name}' on {now.isoformat(sep=' ', timespec='seconds')}"
        )
        target.updated_at = now
        target = await uow.tags.update(target)

        await uow.tags.delete(source_id)
        return target, len(source_posts), source.name
