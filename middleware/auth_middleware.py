"""
Request logging middleware.
Token validation happens in FastAPI dependencies; this only logs requests
to protected routes that arrive without a bearer token, plus request timing.
"""
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import List, Optional

from core.logger import logger

# Exact-match public paths
PUBLIC_PATHS: List[str] = ["/", "/health", "/docs", "/redoc", "/openapi.json"]

# Prefix-match public paths
PUBLIC_PREFIXES: List[str] = [
    "/docs/",
    "/api/auth/signup",
    "/api/auth/login",
    "/api/auth/refresh",
    "/api/auth/forgot-password",
    "/api/auth/reset-password",
]


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or any(path.startswith(prefix) for prefix in PUBLIC_PREFIXES)


class AuthRequiredMiddleware(BaseHTTPMiddleware):
    """Logs unauthenticated calls to protected routes and slow requests."""

    def __init__(self, app, slow_request_ms: int = 1000, public_paths: Optional[List[str]] = None):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms
        self.extra_public = set(public_paths or [])

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        client = request.client.host if request.client else "unknown"

        if request.method != "OPTIONS" and not is_public_path(path) and path not in self.extra_public:
            authorization = request.headers.get("authorization", "")
            if not authorization.lower().startswith("bearer "):
                logger.warning(f"Request without bearer token: {request.method} {path} from {client}")

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > self.slow_request_ms:
            logger.warning(f"Slow request: {request.method} {path} took {elapsed_ms:.0f}ms")
        else:
            logger.debug(f"{request.method} {path} -> {response.status_code} ({elapsed_ms:.0f}ms)")
        return response
