"""
Rate Limiting for CampusDesk API
================================
Implements rate limiting using slowapi with in-process storage.

Only the login route is limited.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from campusdesk.core.config import settings
from campusdesk.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """Rate limit key: the client address"""
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_client_identifier,
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.

    Returns the same envelope as other API errors plus a Retry-After header.
    """
    retry_after = exc.detail.split(":")[-1].strip() if exc.detail else "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}",
        extra={"event_type": "rate_limit", "http_path": request.url.path}
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "Too many requests. Please try again later.",
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": "Too many requests. Please try again later.",
                "details": {"limit": str(exc.detail)},
            },
        },
        headers={"Retry-After": retry_after if retry_after.isdigit() else "60"},
    )


def auth_rate_limit():
    """Rate limit for login (LOGIN_RATE_LIMIT)"""
    return limiter.limit(settings.LOGIN_RATE_LIMIT)
