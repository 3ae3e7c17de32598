"""CORS policy, rate limiting, security headers and request logging."""

import asyncio
import logging
import math
import re
import time
from typing import Callable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..config import Settings
from ..core.errors import CORSError, RateLimitError

logger = logging.getLogger(__name__)

HEALTH_PATH = "/api/health"

# Private network IPs on the Vite dev port, allowed outside production
LOCAL_NETWORK_ORIGIN = re.compile(
    r"^https?://(192\.168\.\d+\.\d+|10\.\d+\.\d+\.\d+|172\.(1[6-9]|2\d|3[01])\.\d+\.\d+):5173/?$"
)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]


# =============================================================================
# CORS
# =============================================================================


def is_origin_allowed(origin: Optional[str], settings: Settings) -> bool:
    """Decide whether a browser origin may call the API.

    Requests with no Origin header (curl, mobile apps, server-to-server)
    are always allowed.
    """
    if not origin:
        return True

    if origin.rstrip("/") in settings.allowed_origins:
        return True

    if not settings.is_production and LOCAL_NETWORK_ORIGIN.match(origin):
        logger.debug(f"CORS: Allowing local network origin: {origin}")
        return True

    return False


def cors_origin_regex(settings: Settings) -> Optional[str]:
    """Origin regex for CORSMiddleware, None in production."""
    if settings.is_production:
        return None
    return LOCAL_NETWORK_ORIGIN.pattern


def cors_response_headers(request: Request, settings: Settings) -> dict[str, str]:
    """CORS headers for responses built outside CORSMiddleware.

    Unhandled-exception responses are rendered by ServerErrorMiddleware,
    which wraps CORSMiddleware, so they need the headers added by hand.
    """
    origin = request.headers.get("origin")
    if not origin or not is_origin_allowed(origin, settings):
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Reject requests from disallowed origins with a 403 envelope.

    CORSMiddleware only withholds headers from unknown origins; this guard
    makes the rejection explicit before any route runs.
    """

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        if not is_origin_allowed(origin, self.settings):
            logger.warning(f"CORS: Rejecting origin: {origin}")
            error = CORSError(origin)
            return JSONResponse(status_code=error.status_code, content=error.to_payload())
        return await call_next(request)


# =============================================================================
# Rate limiting
# =============================================================================


def get_client_ip(request: Request, trust_proxy_headers: bool = False) -> str:
    """Get the real client IP, accounting for reverse proxies.

    Only checks X-Forwarded-For and X-Real-IP when trust_proxy_headers is
    enabled, which prevents IP spoofing when the app is directly exposed.
    """
    if trust_proxy_headers:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            # First entry is the original client
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

    return request.client.host if request.client else "unknown"


class FixedWindowRateLimiter:
    """In-memory fixed-window request counter per client key.

    Counters live in this process only; each worker limits independently.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        error: str = "Too many requests",
        message: str = "Please try again later",
        retry_after_text: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.error = error
        self.message = message
        self.retry_after_text = retry_after_text
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> dict[str, str]:
        """
        Count one request for key and return RateLimit-* headers.

        Raises:
            RateLimitError: if key has used up the current window
        """
        async with self._lock:
            now = self._clock()
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0

            reset_in = max(0, math.ceil(started + self.window_seconds - now))
            if count >= self.max_requests:
                raise RateLimitError(
                    self.error,
                    self.message,
                    retry_after_seconds=reset_in,
                    retry_after_text=self.retry_after_text,
                )

            count += 1
            self._windows[key] = (started, count)
            self._prune(now)

        return {
            "RateLimit-Limit": str(self.max_requests),
            "RateLimit-Remaining": str(self.max_requests - count),
            "RateLimit-Reset": str(reset_in),
        }

    def _prune(self, now: float) -> None:
        expired = [
            key for key, (started, _) in self._windows.items()
            if now - started >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]


def describe_window(window_seconds: float) -> str:
    minutes = round(window_seconds / 60)
    if minutes >= 1:
        return f"{minutes} minute" + ("s" if minutes != 1 else "")
    return f"{round(window_seconds)} seconds"


def create_general_limiter(settings: Settings) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(
        settings.general_max_requests,
        settings.general_rate_limit_window_ms / 1000,
    )


def create_generation_limiter(settings: Settings) -> FixedWindowRateLimiter:
    window_seconds = settings.rate_limit_window_ms / 1000
    return FixedWindowRateLimiter(
        settings.max_requests_per_window,
        window_seconds,
        error="Too many AI requests",
        message="Please try again later",
        retry_after_text=describe_window(window_seconds),
    )


def rate_limit_response(error: RateLimitError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_payload(),
        headers={"Retry-After": str(error.retry_after_seconds)},
    )


class GeneralRateLimitMiddleware(BaseHTTPMiddleware):
    """Apply the general rate limit to every request."""

    def __init__(self, app, limiter: FixedWindowRateLimiter, trust_proxy_headers: bool = False):
        super().__init__(app)
        self.limiter = limiter
        self.trust_proxy_headers = trust_proxy_headers

    async def dispatch(self, request: Request, call_next):
        client_ip = get_client_ip(request, self.trust_proxy_headers)
        try:
            headers = await self.limiter.hit(client_ip)
        except RateLimitError as e:
            logger.warning(f"Rate limit exceeded for {client_ip}", extra={"client_ip": client_ip})
            return rate_limit_response(e)

        response = await call_next(request)
        # Route-level limits (generation) take precedence in the headers
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response


# =============================================================================
# Security headers and request logging
# =============================================================================


def build_content_security_policy(settings: Settings) -> str:
    pims_origin = re.match(r"^https?://[^/]+", settings.pims_base_url)
    connect_src = ["'self'", "https://api.openai.com", "https://*.xano.io"]
    if pims_origin:
        connect_src.insert(2, pims_origin.group(0))
    directives = [
        "default-src 'self'",
        "script-src 'self'",
        "style-src 'self' 'unsafe-inline'",
        "img-src 'self' data: https:",
        "connect-src " + " ".join(connect_src),
    ]
    return "; ".join(directives)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add conservative security headers to every response."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.headers = {
            "Content-Security-Policy": build_content_security_policy(settings),
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "SAMEORIGIN",
            "Referrer-Policy": "no-referrer",
        }

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of each request."""

    async def dispatch(self, request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000)
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} - {duration_ms}ms",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration": duration_ms,
            },
        )
        return response
