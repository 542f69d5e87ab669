"""
Rate limiting using SlowAPI
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from bus_reservation.core.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting
    Uses the caller's user_id when present, the client IP otherwise
    """
    user_id = request.query_params.get('user_id')
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_identifier,
    default_limits=["100/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
