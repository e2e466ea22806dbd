"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from domain.services.association_service import AssociationService
from domain.services.merge_service import MergeService
from domain.services.similarity_service import SimilarityService
from domain.services.tag_analytics_service import TagAnalyticsService
from domain.services.tag_service import TagService
from domain.services.usage_service import UsageService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_usage_service() -> UsageService:
    """Get Usage service instance."""
    return UsageService(get_uow_factory())


@lru_cache
def get_tag_service() -> TagService:
    """Get Tag service instance."""
    return TagService(get_uow_factory(), usage_service=get_usage_service())


@lru_cache
def get_association_service() -> AssociationService:
    """Get Association service instance."""
    return AssociationService(get_uow_factory(), usage_service=get_usage_service())


@lru_cache
def get_merge_service() -> MergeService:
    """Get Merge service instance."""
    return MergeService(get_uow_factory(), usage_service=get_usage_service())


@lru_cache
def get_similarity_service() -> SimilarityService:
    """Get Similarity service instance."""
    return SimilarityService(get_uow_factory())


@lru_cache
def get_tag_analytics_service() -> TagAnalyticsService:
    """Get Tag analytics service instance."""
    return TagAnalyticsService(get_uow_factory())
