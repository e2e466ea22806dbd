"""Tag domain entity and the naming rules it enforces."""

import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from core.exceptions import ValidationError

NAME_MAX_LENGTH = 100
SLUG_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 500

_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
_SLUG_DISALLOWED_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-{2,}")
_SLUG_VALID_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def generate_slug(name: str) -> str:
    """Derive a URL-safe slug from a tag name.

    "Spring  Boot" -> "spring-boot", "C++ / Rust" -> "c-rust". Names with
    nothing ASCII left after stripping get a random ``tag-xxxxxxx`` slug.
    """
    slug = name.lower().strip()
    slug = _SLUG_DISALLOWED_RE.sub("", slug)
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _HYPHENS_RE.sub("-", slug)
    slug = slug.strip("-")[:SLUG_MAX_LENGTH].rstrip("-")
    if not slug:
        suffix = "".join(secrets.choice(string.ascii_lowercase) for _ in range(7))
        slug = f"tag-{suffix}"
    return slug


def normalize_name(name: str | None) -> str:
    """Trim and validate a tag name."""
    value = (name or "").strip()
    if not value:
        raise ValidationError("Tag name is required", field="name")
    if len(value) > NAME_MAX_LENGTH:
        raise ValidationError(
            f"Tag name must not exceed {NAME_MAX_LENGTH} characters", field="name"
        )
    return value


def normalize_slug(slug: str) -> str:
    value = slug.strip().lower()
    if not value or len(value) > SLUG_MAX_LENGTH or not _SLUG_VALID_RE.match(value):
        raise ValidationError(f"Invalid tag slug: {slug!r}", field="slug")
    return value


def normalize_description(description: str | None) -> str | None:
    if description is None:
        return None
    value = description.strip()
    if len(value) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Tag description must not exceed {DESCRIPTION_MAX_LENGTH} characters",
            field="description",
        )
    return value or None


def normalize_color(color: str | None) -> str | None:
    """Validate a ``#RRGGBB`` color; empty means no color."""
    if color is None:
        return None
    value = color.strip()
    if not value:
        return None
    if not _COLOR_RE.match(value):
        raise ValidationError(f"Invalid color format: {color!r}", field="color")
    return value.upper()


@dataclass
class Tag:
    """Domain entity for a Tag.

    ``usage_count`` is a cached projection of the post association set and
    is only changed through usage accounting, never through field edits.
    """

    name: str
    slug: str
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    color: str | None = None
    usage_count: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_used(self) -> bool:
        return self.usage_count > 0

    def append_note(self, note: str) -> None:
        """Append a paragraph to the description."""
        if self.description:
            self.description = f"{self.description}\n\n{note}"
        else:
            self.description = note

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at
