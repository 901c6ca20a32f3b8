"""Rate limiting using slowapi, keyed by caller."""

from fastapi import Request
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address

from recipe_ai.config import settings


def get_user_for_rate_limit(request: Request) -> str:
    """Rate-limit key: the ``X-User-Id`` header, else the client address."""
    user_id = request.headers.get("X-User-Id", "").strip()
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_user_for_rate_limit,
    default_limits=[f"{settings.rate_limit_per_hour}/hour"],
    storage_uri="memory://",
)


def get_rate_limit_exceeded_handler():
    """Get rate limit exceeded handler."""
    return _rate_limit_exceeded_handler


def rate_limit_dependency(request: Request) -> None:
    """
    Rate limit dependency for FastAPI.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    # slowapi has no public "check" helper; `_check_request_limit` raises
    # `RateLimitExceeded` when the limit is hit.
    limiter._check_request_limit(request, endpoint_func=None)
