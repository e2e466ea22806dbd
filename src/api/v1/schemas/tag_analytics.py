"""Pydantic schemas for tag reporting endpoints."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from api.v1.schemas.tag import TagResponse


class TagCloudEntryResponse(BaseModel):
    """A tag and its 1-5 cloud weight."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    count: int
    color: str | None = None
    weight: int


class TagCloudResponse(BaseModel):
    data: list[TagCloudEntryResponse]


class UsageDistributionResponse(BaseModel):
    """Tag counts per usage bucket: 0, 1-2, 3-5, 6-10, 11+."""

    model_config = ConfigDict(from_attributes=True)

    unused: int
    rare: int
    moderate: int
    popular: int
    very_popular: int


class TagStatisticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    used: int
    unused: int


class TrendAnalysisResponse(BaseModel):
    """Overall usage snapshot with the ten most used tags."""

    model_config = ConfigDict(from_attributes=True)

    total: int
    used: int
    unused: int
    usage_rate: float
    average_usage: float
    distribution: UsageDistributionResponse
    top_tags: list[TagResponse]


class RelatedTagResponse(BaseModel):
    """A co-occurring tag and the number of posts it shares."""

    tag: TagResponse
    shared_posts: int


class RelatedTagListResponse(BaseModel):
    data: list[RelatedTagResponse]


class UsageRecomputeResponse(BaseModel):
    """Repaired usage count of one tag."""

    tag_id: UUID
    usage_count: int


class RecomputeReportResponse(BaseModel):
    """Outcome of a full usage repair pass."""

    model_config = ConfigDict(from_attributes=True)

    total: int
    updated: int
    drifted: int
    failed_ids: list[UUID]
