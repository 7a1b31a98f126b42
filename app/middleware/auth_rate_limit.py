from __future__ import annotations

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import AUTH_RATE_LIMIT, AUTH_RATE_LIMIT_ENABLED, AUTH_RATE_WINDOW_SECONDS
from app.core.rate_limiter import InMemoryRateLimiterService, RateLimiterService
from app.core.responses import error_response

logger = logging.getLogger(__name__)

AUTH_PATH_PREFIX = "/auth/"


class AuthRateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window limit per client IP on the /auth endpoints."""

    def __init__(
        self,
        app,
        *,
        rate_limiter: RateLimiterService | None = None,
        enabled: bool = AUTH_RATE_LIMIT_ENABLED,
    ) -> None:
        super().__init__(app)
        self._rate_limiter = rate_limiter or InMemoryRateLimiterService(
            limit=AUTH_RATE_LIMIT,
            window_seconds=AUTH_RATE_WINDOW_SECONDS,
        )
        self._enabled = enabled

    async def dispatch(self, request: Request, call_next):
        if not self._enabled or not request.url.path.startswith(AUTH_PATH_PREFIX) or request.method == "OPTIONS":
            return await call_next(request)

        client_key = _client_ip(request)
        decision = self._rate_limiter.check(client_key=client_key, endpoint="auth")
        if not decision.allowed:
            logger.warning("auth rate limit exceeded client=%s endpoint=%s", client_key, request.url.path)
            return error_response(
                "Too many authentication attempts, please try again later",
                429,
                headers={
                    "Retry-After": str(decision.retry_after_seconds),
                    "X-RateLimit-Limit": str(decision.limit),
                    "X-RateLimit-Remaining": str(decision.remaining),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response


def _client_ip(request: Request) -> str:
    # X-Forwarded-For vem do cliente; o Mangum já preenche client com o sourceIp do API Gateway
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
