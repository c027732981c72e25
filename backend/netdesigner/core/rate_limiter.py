"""
Rate Limiting for the NetDesigner API
=====================================
slowapi limiter keyed by the authenticated user, falling back to client IP.

Endpoint limits:
- /users/register: 3 req/min
- /users/login: 5 req/min
- /teams/{id}/invite: 5 per 15 minutes
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from netdesigner.core.config import settings
from netdesigner.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key.

    Priority:
    1. Authenticated user ID (set by the auth dependency)
    2. IP address
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


def get_storage_uri() -> str:
    """Redis when configured, otherwise process memory"""
    return settings.REDIS_URL or "memory://"


limiter = Limiter(
    key_func=get_user_identifier,
    storage_uri=get_storage_uri(),
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return 429 with a Retry-After header"""
    retry_after = "60"
    if getattr(exc, "limit", None) is not None:
        retry_after = str(exc.limit.limit.get_expiry())

    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please try again later.",
            "detail": str(exc.detail),
            "retry_after_seconds": int(retry_after),
        },
        headers={"Retry-After": retry_after},
    )


def auth_rate_limit(limit: str = "5/minute"):
    """Rate limit for auth endpoints"""
    return limiter.limit(limit, key_func=get_remote_address)


def invite_rate_limit():
    """Rate limit for team invitations"""
    return limiter.limit(settings.INVITE_RATE_LIMIT, key_func=get_user_identifier)
