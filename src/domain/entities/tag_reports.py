"""Read-only value objects for tag search, batch, merge and analytics operations."""

from dataclasses import dataclass, field
from uuid import UUID

from domain.entities.tag import Tag


@dataclass(frozen=True, slots=True)
class BatchItemFailure:
    """One rejected item of a tolerant batch operation."""

    item_id: UUID
    reason: str


@dataclass(frozen=True, slots=True)
class BatchAssociationResult:
    """Outcome of adding or removing many posts on one tag.

    ``count`` is the number of associations actually created or removed.
    """

    tag_id: UUID
    requested: int
    count: int
    skipped: list[BatchItemFailure] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BatchMergeResult:
    """Outcome of merging many source tags into one target."""

    target_id: UUID
    target_name: str
    merged_count: int
    total_posts_transferred: int
    merged_names: list[str] = field(default_factory=list)
    failed_entries: list[BatchItemFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed_entries


@dataclass(frozen=True, slots=True)
class RecomputeReport:
    """Outcome of a full usage-count repair pass."""

    total: int
    updated: int
    drifted: int
    failed_ids: list[UUID] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class MergeSuggestion:
    """Two tags whose names are similar enough to consider merging."""

    tag_a: Tag
    tag_b: Tag
    similarity: float
    recommended_target_id: UUID


@dataclass(frozen=True, slots=True)
class TagCloudEntry:
    """A tag with its display weight (1-5) in a tag cloud."""

    id: UUID
    name: str
    slug: str
    count: int
    color: str | None
    weight: int


@dataclass(frozen=True, slots=True)
class UsageDistribution:
    """Tag counts bucketed by usage."""

    unused: int = 0
    rare: int = 0
    moderate: int = 0
    popular: int = 0
    very_popular: int = 0


@dataclass(frozen=True, slots=True)
class TagStatistics:
    total: int
    used: int
    unused: int


@dataclass(frozen=True, slots=True)
class TrendAnalysis:
    """Snapshot of overall tag usage."""

    total: int
    used: int
    unused: int
    usage_rate: float
    average_usage: float
    distribution: UsageDistribution
    top_tags: list[Tag] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class NameCheck:
    """Result of checking a candidate tag name without creating it."""

    valid: bool
    error: str | None = None
    suggested_slug: str | None = None
    existing: Tag | None = None


@dataclass(frozen=True, slots=True)
class DeletionCheck:
    """Whether a tag may be strictly deleted."""

    tag_id: UUID
    name: str
    usage_count: int

    @property
    def can_delete(self) -> bool:
        return self.usage_count == 0

    @property
    def message(self) -> str:
        if self.can_delete:
            return "Tag is unused and can be deleted safely"
        return (
            f"Tag '{self.name}' is used by {self.usage_count} posts; "
            "use force delete to detach them first"
        )


@dataclass(frozen=True, slots=True)
class TagSearchCriteria:
    """Filters and ordering for an advanced tag search.

    ``None`` disables a filter. Text filters are case-insensitive
    containment matches; ``sort_by`` is one of name, usage, created, updated.
    """

    name: str | None = None
    description: str | None = None
    min_usage: int | None = None
    max_usage: int | None = None
    has_color: bool | None = None
    sort_by: str = "name"
    ascending: bool = True
