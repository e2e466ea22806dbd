"""Pydantic schemas for the post side of post-tag associations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.post import PostStatus


class PostResponse(BaseModel):
    """Schema for Post response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    status: PostStatus
    created_at: datetime


class PostListResponse(BaseModel):
    """Schema for list of Posts."""

    data: list[PostResponse]


class PostTagsSet(BaseModel):
    """Schema for replacing a post's whole tag set."""

    tag_ids: list[UUID] = Field(default_factory=list)


class PostTagChangeResponse(BaseModel):
    """Outcome of attaching or detaching one tag."""

    post_id: UUID
    tag_id: UUID
    changed: bool
