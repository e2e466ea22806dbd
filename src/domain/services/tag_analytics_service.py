"""Read-only projections over the tag store: clouds, distributions, recency."""

from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

from core.clock import Clock, utcnow
from core.config import settings
from core.exceptions import TagNotFoundError, ValidationError
from domain.entities.tag import Tag
from domain.entities.tag_reports import (
    TagCloudEntry,
    TagStatistics,
    TrendAnalysis,
    UsageDistribution,
)
from domain.repositories.unit_of_work import IUnitOfWork

MIN_WEIGHT = 1
MAX_WEIGHT = 5
DEFAULT_POPULAR_LIMIT = 10
DEFAULT_RECOMMENDED_LIMIT = 10
DEFAULT_RELATED_LIMIT = 5
TOP_TAGS_IN_TREND = 10


def cloud_weight(count: int, lowest: int, highest: int) -> int:
    """Linear 1-5 weight of ``count`` between the lowest and highest counts."""
    if highest <= lowest:
        return MIN_WEIGHT
    raw = MIN_WEIGHT + (count - lowest) * (MAX_WEIGHT - MIN_WEIGHT) / (highest - lowest)
    return int(raw + 0.5)


def distribute(tags: list[Tag]) -> UsageDistribution:
    unused = rare = moderate = popular = very_popular = 0
    for tag in tags:
        count = tag.usage_count
        if count == 0:
            unused += 1
        elif count <= 2:
            rare += 1
        elif count <= 5:
            moderate += 1
        elif count <= 10:
            popular += 1
        else:
            very_popular += 1
    return UsageDistribution(
        unused=unused,
        rare=rare,
        moderate=moderate,
        popular=popular,
        very_popular=very_popular,
    )


class TagAnalyticsService:
    """Service layer for tag display and reporting views."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Clock = utcnow,
        cloud_default_size: int = settings.tag_cloud_default_size,
        recent_default_limit: int = settings.recent_tags_default_limit,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._cloud_default_size = cloud_default_size
        self._recent_default_limit = recent_default_limit

    async def tag_cloud(self, max_tags: int) -> list[TagCloudEntry]:
        """Most used tags with a 1-5 display weight."""
        limit = max_tags if max_tags > 0 else self._cloud_default_size
        async with self._uow_factory() as uow:
            used = await uow.tags.get_used()

        selected = [tag for tag in used if tag.usage_count > 0]
        selected.sort(key=lambda t: (-t.usage_count, t.name))
        selected = selected[:limit]
        if not selected:
            return []

        highest = selected[0].usage_count
        lowest = selected[-1].usage_count
        return [
            TagCloudEntry(
                id=tag.id,
                name=tag.name,
                slug=tag.slug,
                count=tag.usage_count,
                color=tag.color,
                weight=cloud_weight(tag.usage_count, lowest, highest),
            )
            for tag in selected
        ]

    async def usage_distribution(self) -> UsageDistribution:
        async with self._uow_factory() as uow:
            tags = await uow.tags.get_all()
        return distribute(tags)

    async def recently_created(self, days: int, limit: int) -> list[Tag]:
        """Tags created within the last ``days`` days, newest first."""
        since = self._since(days)
        async with self._uow_factory() as uow:
            return await uow.tags.get_created_since(  # type: ignore[no-any-return]
                since, self._recent_limit(limit)
            )

    async def recently_updated(self, days: int, limit: int) -> list[Tag]:
        """Tags updated within the last ``days`` days, most recent first."""
        since = self._since(days)
        async with self._uow_factory() as uow:
            return await uow.tags.get_updated_since(  # type: ignore[no-any-return]
                since, self._recent_limit(limit)
            )

    async def popular(self, limit: int) -> list[Tag]:
        limit = limit if limit > 0 else DEFAULT_POPULAR_LIMIT
        async with self._uow_factory() as uow:
            used = await uow.tags.get_used()
        return used[:limit]  # type: ignore[no-any-return]

    async def recommended(self, limit: int) -> list[Tag]:
        """Half most used, half most recently touched among used tags.

        Popular tags come first; a tag in both halves appears once.
        """
        limit = limit if limit > 0 else DEFAULT_RECOMMENDED_LIMIT
        async with self._uow_factory() as uow:
            used = await uow.tags.get_used()

        popular = used[: limit - limit // 2]
        recent = sorted(used, key=lambda t: t.updated_at, reverse=True)[: limit // 2]

        picked: dict[UUID, Tag] = {}
        for tag in popular + recent:
            picked.setdefault(tag.id, tag)
        return list(picked.values())[:limit]

    async def related(self, tag_id: UUID, limit: int) -> list[tuple[Tag, int]]:
        """Tags that share posts with ``tag_id``, by number of shared posts."""
        limit = limit if limit > 0 else DEFAULT_RELATED_LIMIT
        async with self._uow_factory() as uow:
            if not await uow.tags.get(tag_id):
                raise TagNotFoundError(str(tag_id))
            return await uow.tags.get_related(tag_id, limit)  # type: ignore[no-any-return]

    async def by_usage_range(self, min_usage: int | None, max_usage: int | None) -> list[Tag]:
        low = min_usage or 0
        if low < 0 or (max_usage is not None and max_usage < low):
            raise ValidationError(
                f"Invalid usage range: {min_usage}..{max_usage}", field="min_usage"
            )
        async with self._uow_factory() as uow:
            return await uow.tags.get_by_usage_range(low, max_usage)  # type: ignore[no-any-return]

    async def statistics(self) -> TagStatistics:
        async with self._uow_factory() as uow:
            tags = await uow.tags.get_all()
        used = sum(1 for tag in tags if tag.is_used)
        return TagStatistics(total=len(tags), used=used, unused=len(tags) - used)

    async def trend_analysis(self) -> TrendAnalysis:
        async with self._uow_factory() as uow:
            tags = await uow.tags.get_all()

        used_tags = sorted(
            (tag for tag in tags if tag.is_used),
            key=lambda t: (-t.usage_count, t.name),
        )
        total = len(tags)
        used = len(used_tags)
        average = (
            sum(tag.usage_count for tag in used_tags) / used if used else 0.0
        )
        return TrendAnalysis(
            total=total,
            used=used,
            unused=total - used,
            usage_rate=used / total if total else 0.0,
            average_usage=average,
            distribution=distribute(tags),
            top_tags=used_tags[:TOP_TAGS_IN_TREND],
        )

    def _since(self, days: int) -> datetime:
        if days < 0:
            raise ValidationError("days must not be negative", field="days")
        return self._clock() - timedelta(days=days)

    def _recent_limit(self, limit: int) -> int:
        return limit if limit > 0 else self._recent_default_limit
