"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.post_repository import IPostRepository
from domain.repositories.tag_repository import ITagRepository


class IUnitOfWork(Protocol):
    """A single transaction over tags, posts and their associations.

    Services open one per operation. An association change and the usage
    count change it implies must be committed through the same instance.
    """

    tags: ITagRepository
    posts: IPostRepository

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

    async def __aenter__(self) -> "IUnitOfWork": ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        ...
