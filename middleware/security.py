"""
Security middleware: rate limiting, security headers, CORS and trusted hosts.
"""
from fastapi import Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
import time
from collections import defaultdict, deque
from typing import Deque, Dict, List, Optional

from core.logger import logger
from core.responses import error_response


class SlidingWindow:
    """Request timestamps per client within a fixed window."""

    def __init__(self, limit: int, window_seconds: int):
        self.limit = limit
        self.window_seconds = window_seconds
        self.hits: Dict[str, Deque[float]] = defaultdict(deque)

    def _evict(self, key: str, now: float) -> Deque[float]:
        hits = self.hits[key]
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()
        return hits

    def is_full(self, key: str, now: float) -> bool:
        return len(self._evict(key, now)) >= self.limit

    def record(self, key: str, now: float) -> None:
        self.hits[key].append(now)

    def prune(self, now: float) -> None:
        for key in list(self.hits.keys()):
            if not self._evict(key, now):
                del self.hits[key]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP rate limiting over a one-minute and a one-hour window."""

    def __init__(self, app, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        """
        Args:
            app: ASGI application
            requests_per_minute: Max requests per minute per IP
            requests_per_hour: Max requests per hour per IP
        """
        super().__init__(app)
        self.windows = [
            SlidingWindow(requests_per_minute, 60),
            SlidingWindow(requests_per_hour, 3600),
        ]
        self.cleanup_interval = 300
        self.last_cleanup = time.time()

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"
        now = time.time()

        if now - self.last_cleanup > self.cleanup_interval:
            for window in self.windows:
                window.prune(now)
            self.last_cleanup = now

        if any(window.is_full(client_ip, now) for window in self.windows):
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            # Exceptions raised here bypass the app's exception handlers
            return error_response(
                status.HTTP_429_TOO_MANY_REQUESTS,
                "Rate limit exceeded. Please try again later.",
                error="rate_limited",
                headers={"Retry-After": "60"}
            )

        for window in self.windows:
            window.record(client_ip, now)

        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to responses. HSTS only when serving production traffic."""

    def __init__(self, app, hsts: bool = False):
        super().__init__(app)
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if self.hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


def setup_cors(app, allowed_origins: List[str], allowed_methods: Optional[List[str]] = None):
    """
    Setup CORS middleware.

    Args:
        app: FastAPI application
        allowed_origins: List of allowed origins
        allowed_methods: List of allowed HTTP methods
    """
    if allowed_methods is None:
        allowed_methods = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]

    # Browsers refuse credentialed requests to a wildcard origin
    allow_credentials = "*" not in allowed_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=allow_credentials,
        allow_methods=allowed_methods,
        allow_headers=["Authorization", "Content-Type"],
    )


def setup_trusted_hosts(app, allowed_hosts: List[str]):
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts)
