"""Usage accounting: keeps Tag.usage_count equal to its association count."""

from collections.abc import Callable
from uuid import UUID

import structlog

from core.clock import Clock, utcnow
from core.exceptions import TagNotFoundError
from domain.entities.tag_reports import RecomputeReport
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class UsageService:
    """Service layer for the usage_count projection.

    The in-transaction methods (``increment``, ``decrement``, ``recompute``)
    are called by the association and merge services inside their own unit
    of work, right next to the association change they account for.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Clock = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    # --- In-transaction accounting ---

    async def increment(self, uow: IUnitOfWork, tag_id: UUID) -> None:
        """Add one usage within an existing UoW transaction."""
        await uow.tags.increment_usage(tag_id, self._clock())

    async def decrement(self, uow: IUnitOfWork, tag_id: UUID) -> None:
        """Remove one usage within an existing UoW transaction (floors at 0)."""
        await uow.tags.decrement_usage(tag_id, self._clock())

    async def recompute(self, uow: IUnitOfWork, tag_id: UUID) -> int:
        """Reset usage_count to the true association count and return it."""
        actual = await uow.tags.count_posts(tag_id)
        await uow.tags.set_usage(tag_id, actual, self._clock())
        return actual

    # --- Standalone operations ---

    async def increment_usage(self, tag_id: UUID) -> None:
        async with self._uow_factory() as uow:
            if not await uow.tags.get_for_update(tag_id):
                raise TagNotFoundError(str(tag_id))
            await self.increment(uow, tag_id)
            await uow.commit()

    async def decrement_usage(self, tag_id: UUID) -> None:
        async with self._uow_factory() as uow:
            if not await uow.tags.get_for_update(tag_id):
                raise TagNotFoundError(str(tag_id))
            await self.decrement(uow, tag_id)
            await uow.commit()

    async def recompute_usage(self, tag_id: UUID) -> int:
        """Repair one tag's usage_count from its association set."""
        async with self._uow_factory() as uow:
            tag = await uow.tags.get_for_update(tag_id)
            if not tag:
                raise TagNotFoundError(str(tag_id))
            actual = await self.recompute(uow, tag_id)
            await uow.commit()

        if actual != tag.usage_count:
            logger.info(
                "usage_count_repaired",
                tag_id=str(tag_id),
                tag_name=tag.name,
                previous=tag.usage_count,
                actual=actual,
            )
        return actual

    async def recompute_all(self) -> RecomputeReport:
        """Repair every tag, one transaction per tag.

        Full table scan; meant for administrative use, not request paths.
        A failure on one tag is logged and does not stop the others.
        """
        async with self._uow_factory() as uow:
            tags = await uow.tags.get_all()

        updated = 0
        drifted = 0
        failed_ids: list[UUID] = []
        for tag in tags:
            try:
                async with self._uow_factory() as uow:
                    locked = await uow.tags.get_for_update(tag.id)
                    if not locked:
                        raise TagNotFoundError(str(tag.id))
                    actual = await self.recompute(uow, tag.id)
                    await uow.commit()
            except Exception:
                logger.exception(
                    "usage_recompute_failed",
                    tag_id=str(tag.id),
                    tag_name=tag.name,
                )
                failed_ids.append(tag.id)
                continue

            updated += 1
            if actual != locked.usage_count:
                drifted += 1

        logger.info(
            "usage_recompute_completed",
            total=len(tags),
            updated=updated,
            drifted=drifted,
            failed=len(failed_ids),
        )
        return RecomputeReport(
            total=len(tags),
            updated=updated,
            drifted=drifted,
            failed_ids=failed_ids,
        )
