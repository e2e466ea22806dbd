"""Tag API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_association_service, get_tag_service
from api.v1.schemas.post import PostListResponse, PostResponse
from api.v1.schemas.tag import (
    BatchAssociationResponse,
    CleanupResponse,
    DeletionCheckResponse,
    NameCheckResponse,
    PostIdsRequest,
    TagBulkCreate,
    TagCreate,
    TagDeleteResponse,
    TagDetailResponse,
    TagListResponse,
    TagResponse,
    TagSmartCreate,
    TagUpdate,
)
from core.rate_limit import BATCH_LIMIT, READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.tag_reports import TagSearchCriteria
from domain.services.association_service import AssociationService
from domain.services.tag_service import DEFAULT_SUGGESTION_LIMIT, TagService

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get(
    "",
    response_model=TagListResponse,
    summary="List all tags",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_tags(
    request: Request,
    service: TagService = Depends(get_tag_service),
) -> TagListResponse:
    """Get all tags ordered by name, including usage counts."""
    tags = await service.list_all()
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.get(
    "/search",
    response_model=TagListResponse,
    summary="Search tags by name",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def search_tags(
    request: Request,
    q: str | None = Query(None, description="Case-insensitive name fragment"),
    service: TagService = Depends(get_tag_service),
) -> TagListResponse:
    """Tags whose name contains ``q``. A blank query returns no tags."""
    tags = await service.search(q)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.get(
    "/suggestions",
    response_model=TagListResponse,
    summary="Autocomplete tag names",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def suggest_tags(
    request: Request,
    q: str | None = Query(None, description="Name fragment typed so far"),
    limit: int = Query(DEFAULT_SUGGESTION_LIMIT, description="Clamped to 1..20"),
    service: TagService = Depends(get_tag_service),
) -> TagListResponse:
    tags = await service.suggest(q, limit)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.get(
    "/advanced-search",
    response_model=TagListResponse,
    summary="Filter and sort tags",
    responses={400: {"description": "Unknown sort field or inverted usage range"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def advanced_search_tags(
    request: Request,
    name: str | None = Query(None, description="Name fragment, any case"),
    description: str | None = Query(None, description="Description fragment, any case"),
    min_usage: int | None = Query(None, ge=0),
    max_usage: int | None = Query(None, ge=0),
    has_color: bool | None = Query(None),
    sort_by: str = Query("name", description="name, usage, created or updated"),
    ascending: bool = Query(True),
    service: TagService = Depends(get_tag_service),
) -> TagListResponse:
    criteria = TagSearchCriteria(
        name=name,
        description=description,
        min_usage=min_usage,
        max_usage=max_usage,
        has_color=has_color,
        sort_by=sort_by,
        ascending=ascending,
    )
    tags = await service.advanced_search(criteria)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.get(
    "/validate-name",
    response_model=NameCheckResponse,
    summary="Check a candidate tag name",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def validate_tag_name(
    request: Request,
    name: str | None = Query(None),
    service: TagService = Depends(get_tag_service),
) -> NameCheckResponse:
    """Validate a name and suggest its slug without creating anything."""
    check = await service.validate_name(name)
    return NameCheckResponse.model_validate(check)


@router.get(
    "/slug/{slug}",
    response_model=TagDetailResponse,
    summary="Get a tag by slug",
    responses={404: {"description": "Tag not found"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_tag_by_slug(
    request: Request,
    slug: str,
    service: TagService = Depends(get_tag_service),
) -> TagDetailResponse:
    tag = await service.get_by_slug(slug)
    return TagDetailResponse(data=TagResponse.model_validate(tag))


@router.post(
    "",
    response_model=TagDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tag",
    responses={
        201: {"description": "Tag created successfully"},
        400: {"description": "Invalid name, slug, description or color"},
        409: {"description": "Tag with this name or slug already exists"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def create_tag(
    request: Request,
    body: TagCreate,
    user: CurrentUser,
    service: TagService = Depends(get_tag_service),
) -> TagDetailResponse:
    """Create a new tag. Names and slugs must be unique."""
    tag = await service.create(
        name=body.name,
        description=body.description,
        color=body.color,
        slug=body.slug,
    )
    return TagDetailResponse(data=TagResponse.model_validate(tag))


@router.post(
    "/smart-create",
    response_model=TagDetailResponse,
    summary="Find a tag by name or create it",
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def smart_create_tag(
    request: Request,
    body: TagSmartCreate,
    user: CurrentUser,
    service: TagService = Depends(get_tag_service),
) -> TagDetailResponse:
    """Return the tag with this name (any case), creating it if absent.

    An existing tag is returned unchanged; description and color only apply
    to a newly created tag.
    """
    tag = await service.find_or_create_by_name(
        body.name,
        description=body.description,
        color=body.color,
    )
    return TagDetailResponse(data=TagResponse.model_validate(tag))


@router.post(
    "/bulk",
    response_model=TagListResponse,
    summary="Resolve many names to tags",
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def bulk_get_or_create_tags(
    request: Request,
    body: TagBulkCreate,
    user: CurrentUser,
    service: TagService = Depends(get_tag_service),
) -> TagListResponse:
    """Get or create a tag for each non-blank name, in request order."""
    tags = await service.get_or_create(body.names)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.delete(
    "/unused",
    response_model=CleanupResponse,
    summary="Delete every unused tag",
)
@limiter.limit(BATCH_LIMIT)  # type: ignore[untyped-decorator]
async def cleanup_unused_tags(
    request: Request,
    user: CurrentUser,
    service: TagService = Depends(get_tag_service),
) -> CleanupResponse:
    deleted = await service.cleanup_unused()
    return CleanupResponse(deleted=deleted)


@router.get(
    "/{tag_id}",
    response_model=TagDetailResponse,
    summary="Get a tag",
    responses={404: {"description": "Tag not found"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_tag(
    request: Request,
    tag_id: UUID,
    service: TagService = Depends(get_tag_service),
) -> TagDetailResponse:
    tag = await service.get_by_id(tag_id)
    return TagDetailResponse(data=TagResponse.model_validate(tag))


@router.patch(
    "/{tag_id}",
    response_model=TagDetailResponse,
    summary="Update a tag",
    responses={
        200: {"description": "Tag updated successfully"},
        404: {"description": "Tag not found"},
        409: {"description": "Tag with this name or slug already exists"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_tag(
    request: Request,
    tag_id: UUID,
    body: TagUpdate,
    user: CurrentUser,
    service: TagService = Depends(get_tag_service),
) -> TagDetailResponse:
    """Update name, slug, description or color. Empty strings clear description and color."""
    tag = await service.update(
        tag_id=tag_id,
        name=body.name,
        slug=body.slug,
        description=body.description,
        color=body.color,
    )
    return TagDetailResponse(data=TagResponse.model_validate(tag))


@router.delete(
    "/{tag_id}",
    response_model=TagDeleteResponse,
    summary="Delete a tag",
    responses={
        200: {"description": "Tag deleted successfully"},
        404: {"description": "Tag not found"},
        409: {"description": "Tag is still attached to posts"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def delete_tag(
    request: Request,
    tag_id: UUID,
    user: CurrentUser,
    force: bool = Query(False, description="Detach from all posts before deleting"),
    service: TagService = Depends(get_tag_service),
) -> TagDeleteResponse:
    """Delete a tag. Without ``force`` a tag in use is refused with 409."""
    if force:
        detached = await service.force_delete(tag_id)
        return TagDeleteResponse(tag_id=tag_id, detached_posts=detached)

    await service.delete(tag_id)
    return TagDeleteResponse(tag_id=tag_id, detached_posts=0)


@router.get(
    "/{tag_id}/deletion-check",
    response_model=DeletionCheckResponse,
    summary="Check whether a tag can be deleted",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def check_tag_deletion(
    request: Request,
    tag_id: UUID,
    service: TagService = Depends(get_tag_service),
) -> DeletionCheckResponse:
    check = await service.validate_deletion(tag_id)
    return DeletionCheckResponse.model_validate(check)


# Tag-Post relationship endpoints


@router.get(
    "/{tag_id}/posts",
    response_model=PostListResponse,
    summary="Get posts for a tag",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_tag_posts(
    request: Request,
    tag_id: UUID,
    post_status: str | None = Query(None, alias="status"),
    service: AssociationService = Depends(get_association_service),
) -> PostListResponse:
    """Posts attached to a tag, newest first. An unknown status filter is ignored."""
    posts = await service.get_posts_for_tag(tag_id, post_status)
    return PostListResponse(data=[PostResponse.model_validate(post) for post in posts])


@router.post(
    "/{tag_id}/posts",
    response_model=BatchAssociationResponse,
    summary="Attach posts to a tag",
    responses={404: {"description": "Tag not found"}},
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def add_posts_to_tag(
    request: Request,
    tag_id: UUID,
    body: PostIdsRequest,
    user: CurrentUser,
    service: AssociationService = Depends(get_association_service),
) -> BatchAssociationResponse:
    """Attach many posts; missing or already attached posts are skipped."""
    result = await service.add_posts_to_tag(tag_id, body.post_ids)
    return BatchAssociationResponse.model_validate(result)


@router.delete(
    "/{tag_id}/posts",
    response_model=BatchAssociationResponse,
    summary="Detach posts from a tag",
    responses={404: {"description": "Tag not found"}},
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def remove_posts_from_tag(
    request: Request,
    tag_id: UUID,
    body: PostIdsRequest,
    user: CurrentUser,
    service: AssociationService = Depends(get_association_service),
) -> BatchAssociationResponse:
    """Detach many posts; missing or unattached posts are skipped."""
    result = await service.remove_posts_from_tag(tag_id, body.post_ids)
    return BatchAssociationResponse.model_validate(result)
