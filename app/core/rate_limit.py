"""Per-client throttling for the report endpoints (slowapi).

Reports rebuild every score of a class on each call, so they are capped at
``settings.rate_limit``; the calculator endpoints are left unthrottled.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings


def get_client_ip(request: Request) -> str:
    """First address in X-Forwarded-For when present, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


# Counters live in process memory; the test suite runs with throttling off.
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[],
    storage_uri="memory://",
    enabled=settings.environment != "test",
)
