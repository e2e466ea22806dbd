"""Post domain entity (the tag core only needs its identity and status)."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4


class PostStatus(StrEnum):
    """Publication state of a post."""

    DRAFT = "draft"
    PUBLISHED = "published"


@dataclass
class Post:
    """Domain entity for a blog Post."""

    title: str
    id: UUID = field(default_factory=uuid4)
    status: PostStatus = PostStatus.DRAFT
    created_at: datetime = field(default_factory=datetime.utcnow)
