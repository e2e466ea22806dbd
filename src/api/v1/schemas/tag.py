"""Pydantic schemas for Tag API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TagCreate(BaseModel):
    """Schema for creating a Tag.

    Content rules (trimming, slug format, color format) are enforced by the
    service so that violations surface as ``VALIDATION_ERROR`` responses.
    """

    name: str = Field(..., max_length=200)
    slug: str | None = Field(None, max_length=200)
    description: str | None = None
    color: str | None = Field(None, max_length=7)


class TagSmartCreate(BaseModel):
    """Schema for find-or-create by name."""

    name: str = Field(..., max_length=200)
    description: str | None = None
    color: str | None = Field(None, max_length=7)


class TagBulkCreate(BaseModel):
    """Schema for resolving many names to tags at once."""

    names: list[str] = Field(default_factory=list)


class TagUpdate(BaseModel):
    """Schema for updating a Tag. Omitted fields are left unchanged."""

    name: str | None = Field(None, max_length=200)
    slug: str | None = Field(None, max_length=200)
    description: str | None = None
    color: str | None = Field(None, max_length=7)


class TagResponse(BaseModel):
    """Schema for Tag response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "456e4567-e89b-12d3-a456-426614174000",
                "name": "Spring Boot",
                "slug": "spring-boot",
                "description": "Posts about the Spring Boot framework",
                "color": "#6DB33F",
                "usage_count": 5,
                "created_at": "2026-01-28T10:00:00",
                "updated_at": "2026-02-03T08:30:00",
            }
        },
    )

    id: UUID
    name: str
    slug: str
    description: str | None = None
    color: str | None = None
    usage_count: int = 0
    created_at: datetime
    updated_at: datetime


class TagListResponse(BaseModel):
    """Schema for list of Tags."""

    data: list[TagResponse]


class TagDetailResponse(BaseModel):
    """Schema for single Tag."""

    data: TagResponse


class NameCheckResponse(BaseModel):
    """Result of checking a candidate tag name."""

    model_config = ConfigDict(from_attributes=True)

    valid: bool
    error: str | None = None
    suggested_slug: str | None = None
    existing: TagResponse | None = None


class DeletionCheckResponse(BaseModel):
    """Whether a tag may be deleted without force."""

    model_config = ConfigDict(from_attributes=True)

    tag_id: UUID
    name: str
    usage_count: int
    can_delete: bool
    message: str


class TagDeleteResponse(BaseModel):
    """Outcome of a delete; detached_posts is 0 unless forced."""

    tag_id: UUID
    detached_posts: int


class CleanupResponse(BaseModel):
    """Outcome of deleting every unused tag."""

    deleted: int


class PostIdsRequest(BaseModel):
    """A list of post IDs to attach to or detach from a tag."""

    post_ids: list[UUID] = Field(default_factory=list)


class BatchItemFailureResponse(BaseModel):
    """One skipped item of a batch request."""

    model_config = ConfigDict(from_attributes=True)

    item_id: UUID
    reason: str


class BatchAssociationResponse(BaseModel):
    """Outcome of attaching or detaching many posts."""

    model_config = ConfigDict(from_attributes=True)

    tag_id: UUID
    requested: int
    count: int
    skipped: list[BatchItemFailureResponse]


class MergeRequest(BaseModel):
    """Merge one tag into another."""

    source_id: UUID
    target_id: UUID


class BatchMergeRequest(BaseModel):
    """Merge several tags into one target."""

    source_ids: list[UUID] = Field(..., min_length=1)
    target_id: UUID


class BatchMergeResponse(BaseModel):
    """Outcome of a batch merge."""

    model_config = ConfigDict(from_attributes=True)

    target_id: UUID
    target_name: str
    merged_count: int
    total_posts_transferred: int
    merged_names: list[str]
    failed_entries: list[BatchItemFailureResponse]
    success: bool


class MergeSuggestionResponse(BaseModel):
    """Two similarly named tags and the suggested survivor."""

    model_config = ConfigDict(from_attributes=True)

    tag_a: TagResponse
    tag_b: TagResponse
    similarity: float
    recommended_target_id: UUID


class MergeSuggestionListResponse(BaseModel):
    """Schema for list of merge suggestions."""

    data: list[MergeSuggestionResponse]
