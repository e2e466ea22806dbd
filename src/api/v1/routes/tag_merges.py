"""Tag merge API routes."""

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_merge_service, get_similarity_service
from api.v1.schemas.tag import (
    BatchMergeRequest,
    BatchMergeResponse,
    MergeRequest,
    MergeSuggestionListResponse,
    MergeSuggestionResponse,
    TagDetailResponse,
    TagResponse,
)
from core.config import settings
from core.rate_limit import BATCH_LIMIT, WRITE_LIMIT, limiter
from domain.services.merge_service import MergeService
from domain.services.similarity_service import SimilarityService

router = APIRouter(prefix="/tags", tags=["tag-merges"])


@router.post(
    "/merge",
    response_model=TagDetailResponse,
    summary="Merge one tag into another",
    responses={
        200: {"description": "Source merged; the updated target is returned"},
        400: {"description": "Source and target are the same tag"},
        404: {"description": "Source or target not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def merge_tags(
    request: Request,
    body: MergeRequest,
    user: CurrentUser,
    service: MergeService = Depends(get_merge_service),
) -> TagDetailResponse:
    """Move all posts of the source onto the target, then delete the source."""
    target = await service.merge(body.source_id, body.target_id)
    return TagDetailResponse(data=TagResponse.model_validate(target))


@router.post(
    "/merge/batch",
    response_model=BatchMergeResponse,
    summary="Merge several tags into one target",
    responses={404: {"description": "Target not found"}},
)
@limiter.limit(BATCH_LIMIT)  # type: ignore[untyped-decorator]
async def batch_merge_tags(
    request: Request,
    body: BatchMergeRequest,
    user: CurrentUser,
    service: MergeService = Depends(get_merge_service),
) -> BatchMergeResponse:
    """Each source merges on its own; failures are reported per source."""
    result = await service.batch_merge(body.source_ids, body.target_id)
    return BatchMergeResponse.model_validate(result)


@router.get(
    "/merge-suggestions",
    response_model=MergeSuggestionListResponse,
    summary="Suggest merges between similarly named tags",
)
@limiter.limit(BATCH_LIMIT)  # type: ignore[untyped-decorator]
async def suggest_tag_merges(
    request: Request,
    threshold: float = Query(settings.merge_suggestion_threshold, ge=0.0),
    service: SimilarityService = Depends(get_similarity_service),
) -> MergeSuggestionListResponse:
    """Pairs whose name similarity is at least ``threshold``, most similar first."""
    suggestions = await service.suggest_merges(threshold)
    return MergeSuggestionListResponse(
        data=[MergeSuggestionResponse.model_validate(s) for s in suggestions]
    )
