"""Rate limiting configuration using slowapi."""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import settings

# Per-client budgets, by route kind
READ_LIMIT = "30/minute"
WRITE_LIMIT = "10/minute"
BATCH_LIMIT = "5/minute"
MAINTENANCE_LIMIT = "2/minute"

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a 429 in the same envelope as every other API error."""
    detail = exc.detail if isinstance(exc, RateLimitExceeded) else str(exc)
    return JSONResponse(
        status_code=429,
        content={
            "error_code": "RATE_LIMIT_EXCEEDED",
            "message": f"Too many requests: {detail}",
            "details": {
                "limit": str(detail),
                "request_id": getattr(request.state, "request_id", None),
            },
        },
    )
