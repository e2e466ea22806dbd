"""Tag reporting and usage maintenance routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_tag_analytics_service, get_usage_service
from api.v1.schemas.tag import TagListResponse, TagResponse
from api.v1.schemas.tag_analytics import (
    RecomputeReportResponse,
    RelatedTagListResponse,
    RelatedTagResponse,
    TagCloudEntryResponse,
    TagCloudResponse,
    TagStatisticsResponse,
    TrendAnalysisResponse,
    UsageDistributionResponse,
    UsageRecomputeResponse,
)
from core.rate_limit import MAINTENANCE_LIMIT, READ_LIMIT, WRITE_LIMIT, limiter
from domain.services.tag_analytics_service import TagAnalyticsService
from domain.services.usage_service import UsageService

router = APIRouter(prefix="/tags", tags=["tag-analytics"])


@router.get("/cloud", response_model=TagCloudResponse, summary="Tag cloud")
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_tag_cloud(
    request: Request,
    size: int = Query(0, description="Maximum number of tags; 0 uses the default"),
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> TagCloudResponse:
    """Most used tags with a display weight from 1 to 5."""
    entries = await service.tag_cloud(size)
    return TagCloudResponse(data=[TagCloudEntryResponse.model_validate(e) for e in entries])


@router.get("/stats", response_model=TagStatisticsResponse, summary="Tag counts")
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_tag_statistics(
    request: Request,
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> TagStatisticsResponse:
    stats = await service.statistics()
    return TagStatisticsResponse.model_validate(stats)


@router.get(
    "/stats/distribution",
    response_model=UsageDistributionResponse,
    summary="Usage distribution",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_usage_distribution(
    request: Request,
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> UsageDistributionResponse:
    distribution = await service.usage_distribution()
    return UsageDistributionResponse.model_validate(distribution)


@router.get("/stats/trend", response_model=TrendAnalysisResponse, summary="Trend analysis")
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_trend_analysis(
    request: Request,
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> TrendAnalysisResponse:
    trend = await service.trend_analysis()
    return TrendAnalysisResponse.model_validate(trend)


@router.get(
    "/recent/created",
    response_model=TagListResponse,
    summary="Recently created tags",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_recently_created_tags(
    request: Request,
    days: int = Query(7),
    limit: int = Query(0, description="0 uses the default limit"),
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> TagListResponse:
    tags = await service.recently_created(days, limit)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.get(
    "/recent/updated",
    response_model=TagListResponse,
    summary="Recently updated tags",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_recently_updated_tags(
    request: Request,
    days: int = Query(7),
    limit: int = Query(0, description="0 uses the default limit"),
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> TagListResponse:
    tags = await service.recently_updated(days, limit)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.get("/popular", response_model=TagListResponse, summary="Most used tags")
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_popular_tags(
    request: Request,
    limit: int = Query(10),
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> TagListResponse:
    tags = await service.popular(limit)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.get("/recommended", response_model=TagListResponse, summary="Recommended tags")
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_recommended_tags(
    request: Request,
    limit: int = Query(10),
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> TagListResponse:
    """Popular tags first, then recently touched ones, without repeats."""
    tags = await service.recommended(limit)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.get(
    "/usage-range",
    response_model=TagListResponse,
    summary="Tags within a usage range",
    responses={400: {"description": "Invalid range"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_tags_by_usage_range(
    request: Request,
    min_usage: int | None = Query(None, alias="min"),
    max_usage: int | None = Query(None, alias="max"),
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> TagListResponse:
    tags = await service.by_usage_range(min_usage, max_usage)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.get(
    "/{tag_id}/related",
    response_model=RelatedTagListResponse,
    summary="Tags that share posts with a tag",
    responses={404: {"description": "Tag not found"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_related_tags(
    request: Request,
    tag_id: UUID,
    limit: int = Query(5),
    service: TagAnalyticsService = Depends(get_tag_analytics_service),
) -> RelatedTagListResponse:
    related = await service.related(tag_id, limit)
    return RelatedTagListResponse(
        data=[
            RelatedTagResponse(tag=TagResponse.model_validate(tag), shared_posts=shared)
            for tag, shared in related
        ]
    )


@router.post(
    "/usage/recompute",
    response_model=RecomputeReportResponse,
    summary="Repair every tag's usage count",
)
@limiter.limit(MAINTENANCE_LIMIT)  # type: ignore[untyped-decorator]
async def recompute_all_usage(
    request: Request,
    user: CurrentUser,
    service: UsageService = Depends(get_usage_service),
) -> RecomputeReportResponse:
    """Recount associations for every tag. Full scan; administrative use."""
    report = await service.recompute_all()
    return RecomputeReportResponse.model_validate(report)


@router.post(
    "/{tag_id}/usage/recompute",
    response_model=UsageRecomputeResponse,
    summary="Repair one tag's usage count",
    responses={404: {"description": "Tag not found"}},
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def recompute_tag_usage(
    request: Request,
    tag_id: UUID,
    user: CurrentUser,
    service: UsageService = Depends(get_usage_service),
) -> UsageRecomputeResponse:
    usage_count = await service.recompute_usage(tag_id)
    return UsageRecomputeResponse(tag_id=tag_id, usage_count=usage_count)
