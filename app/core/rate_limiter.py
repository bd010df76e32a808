"""Per-client rate limiting for the public auth endpoints (slowapi)."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings


def client_address(request: Request) -> str:
    """Rate limit key: the client IP address."""
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=client_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
)

# Login, reset request, code check and reset share this budget per route and client.
auth_rate_limit = limiter.limit(settings.AUTH_RATE_LIMIT)
