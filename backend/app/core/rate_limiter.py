"""
Rate Limiting for InnoVoice API
===============================
Implements rate limiting using slowapi. Counters live in process memory by
default (RATE_LIMIT_STORAGE_URI) and reset on restart.

Limits:
- Default: RATE_LIMIT_PER_MINUTE per client
- POST /admin/verify: 10 per 15 minutes (credential guessing)
- POST /suggestions: 20 per hour (spam)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """
    Rate limit key: the first X-Forwarded-For hop when running behind a proxy,
    otherwise the socket address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    JSON 429 response with a Retry-After hint.
    """
    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}",
        extra={"event_type": "rate_limited", "http_path": request.url.path}
    )

    return JSONResponse(
        status_code=429,
        content={
            "message": "Too many requests. Please try again later.",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": "60"}
    )


def staff_verify_rate_limit():
    """Rate limit for the staff credential check"""
    return limiter.limit(settings.STAFF_VERIFY_RATE_LIMIT, key_func=get_client_identifier)


def submission_rate_limit():
    """Rate limit for public suggestion submission"""
    return limiter.limit(settings.SUBMISSION_RATE_LIMIT, key_func=get_client_identifier)
