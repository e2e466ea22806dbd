"""Post-Tag relationship routes, addressed from the post side."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_association_service, get_tag_service
from api.v1.schemas.post import PostTagChangeResponse, PostTagsSet
from api.v1.schemas.tag import TagListResponse, TagResponse
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.services.association_service import AssociationService
from domain.services.tag_service import TagService

router = APIRouter(prefix="/posts/{post_id}/tags", tags=["post-tags"])


@router.get(
    "",
    response_model=TagListResponse,
    summary="Get tags for a post",
    responses={404: {"description": "Post not found"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_post_tags(
    request: Request,
    post_id: UUID,
    service: TagService = Depends(get_tag_service),
) -> TagListResponse:
    tags = await service.get_tags_for_post(post_id)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.put(
    "",
    response_model=TagListResponse,
    summary="Replace the tags of a post",
    responses={404: {"description": "Post or one of the tags not found"}},
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def set_post_tags(
    request: Request,
    post_id: UUID,
    body: PostTagsSet,
    user: CurrentUser,
    service: AssociationService = Depends(get_association_service),
) -> TagListResponse:
    """All-or-nothing: an unknown tag rejects the whole request."""
    tags = await service.set_tags_for_post(post_id, body.tag_ids)
    return TagListResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.post(
    "/{tag_id}",
    response_model=PostTagChangeResponse,
    summary="Attach a tag to a post",
    responses={404: {"description": "Post or tag not found"}},
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def attach_tag(
    request: Request,
    post_id: UUID,
    tag_id: UUID,
    user: CurrentUser,
    service: AssociationService = Depends(get_association_service),
) -> PostTagChangeResponse:
    """Idempotent: ``changed`` is false if the tag was already attached."""
    changed = await service.add_post_to_tag(tag_id, post_id)
    return PostTagChangeResponse(post_id=post_id, tag_id=tag_id, changed=changed)


@router.delete(
    "/{tag_id}",
    response_model=PostTagChangeResponse,
    summary="Detach a tag from a post",
    responses={404: {"description": "Post or tag not found"}},
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def detach_tag(
    request: Request,
    post_id: UUID,
    tag_id: UUID,
    user: CurrentUser,
    service: AssociationService = Depends(get_association_service),
) -> PostTagChangeResponse:
    """Idempotent: ``changed`` is false if the tag was not attached."""
    changed = await service.remove_post_from_tag(tag_id, post_id)
    return PostTagChangeResponse(post_id=post_id, tag_id=tag_id, changed=changed)
