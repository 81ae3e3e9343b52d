"""
Request observer that logs unauthenticated calls to protected routes.

It never blocks a request: the route dependencies decide, and produce the
401/403 envelopes. This only gives operators a trail of anonymous probing.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Iterable, Optional, Set, Tuple

from core.logger import logger

# Exact paths open to everyone
PUBLIC_PATHS: Set[str] = {
    "/",
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/api/auth/register",
    "/api/auth/token",
    "/api/auth/logout",
    "/api/votes/results",
}

# Path prefixes that are public for GET only
PUBLIC_READ_PREFIXES: Tuple[str, ...] = (
    "/api/categories",
    "/api/nominees",
    "/uploads/",
)


def is_public(method: str, path: str, public_paths: Iterable[str] = PUBLIC_PATHS) -> bool:
    if method == "OPTIONS" or path in public_paths:
        return True
    return method in ("GET", "HEAD") and path.startswith(PUBLIC_READ_PREFIXES)


class AuthRequiredMiddleware(BaseHTTPMiddleware):
    """Log requests to protected routes that carry no bearer token."""

    def __init__(self, app, public_paths: Optional[Set[str]] = None):
        super().__init__(app)
        self.public_paths = public_paths or PUBLIC_PATHS

    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        if not is_public(request.method, path, self.public_paths):
            authorization = request.headers.get("authorization")
            if not authorization:
                client = request.client.host if request.client else "unknown"
                logger.warning(f"Request without authentication headers: {request.method} {path} from {client}")

        return await call_next(request)
