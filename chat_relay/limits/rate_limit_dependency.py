"""FastAPI dependency enforcing a RequestLimit per client address."""
import logging

from fastapi import Request, Response

from chat_relay.errors import TooManyRequestsError
from .request_limit import RequestLimit

logger = logging.getLogger(__name__)


def client_key_for(request: Request) -> str:
    """Identify the calling client by its address."""
    return request.client.host if request.client else "unknown"


def rate_limit_dependency(limit: RequestLimit):
    """Build a dependency that counts each request against ``limit``.

    Raises ``TooManyRequestsError`` (429) once the client's quota for the
    current window is used up.
    """
    async def enforce_rate_limit(request: Request, response: Response) -> None:
        client_key = client_key_for(request)
        if not limit.try_acquire(client_key):
            logger.warning(f"[HTTP] Rate limit exceeded for {client_key} on {request.url.path}")
            raise TooManyRequestsError(client_key, limit.name)
        response.headers["RateLimit-Limit"] = str(limit.amount)
        response.headers["RateLimit-Remaining"] = str(limit.get_remaining(client_key))
        response.headers["RateLimit-Reset"] = str(limit.seconds_until_reset())

    return enforce_rate_limit
