"""Shared fixtures for unit tests."""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.tag import Tag, generate_slug

FIXED_NOW = datetime(2026, 3, 14, 15, 9, 26)

# Lookups that must report "missing" unless a test says otherwise; an
# AsyncMock would otherwise return a truthy MagicMock.
_TAG_LOOKUPS = (
    "get",
    "get_for_update",
    "get_by_name",
    "get_by_name_ci",
    "get_by_slug",
)


class FakeUnitOfWork:
    """Fake Unit of Work with tag and post repository mocks for unit testing."""

    def __init__(self) -> None:
        self.tags = AsyncMock()
        self.posts = AsyncMock()
        for name in _TAG_LOOKUPS:
            getattr(self.tags, name).return_value = None
        self.tags.get_all.return_value = []
        self.tags.get_many.return_value = []
        self.tags.get_post_ids.return_value = set()
        self.tags.count_posts.return_value = 0
        self.posts.exists.return_value = True
        self.posts.get_existing_ids.return_value = set()
        self.posts.get_tag_set.return_value = set()
        self.posts.set_tag_set.return_value = (set(), set())
        self.committed = False
        self.rolled_back = False
        self.entered = 0

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        self.entered += 1
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


def make_tag(name: str = "Python", usage_count: int = 0, **kwargs: Any) -> Tag:
    """Build a Tag with a slug derived from its name."""
    kwargs.setdefault("slug", generate_slug(name))
    return Tag(name=name, usage_count=usage_count, **kwargs)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def clock() -> Any:
    """A clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def tag_id() -> UUID:
    """A random tag ID."""
    return uuid4()


@pytest.fixture
def post_id() -> UUID:
    """A random post ID."""
    return uuid4()
