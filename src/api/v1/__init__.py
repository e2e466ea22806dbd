"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.posts import router as posts_router
from api.v1.routes.tag_analytics import router as tag_analytics_router
from api.v1.routes.tag_merges import router as tag_merges_router
from api.v1.routes.tags import router as tags_router

router = APIRouter()
# Fixed /tags/... paths must be registered before /tags/{tag_id}
router.include_router(tag_analytics_router)
router.include_router(tag_merges_router)
router.include_router(tags_router)
router.include_router(posts_router)
