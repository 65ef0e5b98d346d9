import logging
import time
from typing import Sequence
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from lupora.utils.rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

# Routes that accept credentials or payment data get the strict budget
SENSITIVE_PATH_PREFIXES = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/change-password",
    "/api/payment/",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers to every response"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-XSS-Protection"] = "0"
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """Expose request processing time as X-Process-Time"""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Process-Time"] = f"{time.perf_counter() - start:.4f}"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed-window limits per client address.

    Sensitive auth/payment routes share one strict counter; every other
    /api route uses the general counter. Preflight requests are not counted.
    """

    def __init__(
        self,
        app,
        auth_limit: int,
        auth_window_seconds: float,
        api_limit: int,
        api_window_seconds: float,
        enabled: bool = True,
        sensitive_prefixes: Sequence[str] = SENSITIVE_PATH_PREFIXES,
    ):
        super().__init__(app)
        self.enabled = enabled
        self.sensitive_prefixes = tuple(sensitive_prefixes)
        self.auth_limiter = FixedWindowRateLimiter(auth_limit, auth_window_seconds)
        self.api_limiter = FixedWindowRateLimiter(api_limit, api_window_seconds)

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not self.enabled or request.method == "OPTIONS" or not path.startswith("/api/"):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        if path.startswith(self.sensitive_prefixes):
            allowed, retry_after = self.auth_limiter.hit(f"auth:{client}")
            message = "Too many attempts, please try again later"
        else:
            allowed, retry_after = self.api_limiter.hit(f"api:{client}")
            message = "Too many requests, please slow down"

        if not allowed:
            logger.warning(f"Rate limit exceeded for {client} on {path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": message},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
