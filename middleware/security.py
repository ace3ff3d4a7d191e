"""
Security middleware: per-IP rate limiting, security headers, CORS and trusted hosts.
"""
from fastapi import Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import time
from collections import defaultdict, deque
from typing import Deque, Dict, List, Optional

from core.logger import logger


MINUTE = 60
HOUR = 3600


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window rate limiting keyed by client IP."""

    def __init__(self, app, requests_per_minute: int = 120, requests_per_hour: int = 3000,
                 exempt_paths: Optional[List[str]] = None):
        """
        Args:
            app: FastAPI application
            requests_per_minute: Max requests per minute per IP
            requests_per_hour: Max requests per hour per IP
            exempt_paths: Paths never counted (health checks)
        """
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.exempt_paths = set(exempt_paths or ["/health"])
        self.hits: Dict[str, Deque[float]] = defaultdict(deque)
        self.cleanup_interval = 300
        self.last_cleanup = time.time()

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.exempt_paths or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        if now - self.last_cleanup > self.cleanup_interval:
            self._cleanup(now)
            self.last_cleanup = now

        retry_after = self._register_hit(client_ip, now)
        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for IP: {client_ip} ({request.method} {request.url.path})")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Rate limit exceeded. Please try again later."},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)

    def _register_hit(self, client_ip: str, now: float) -> Optional[int]:
        """Record a request. Returns seconds to wait when a limit is hit, else None."""
        hits = self.hits[client_ip]
        while hits and now - hits[0] >= HOUR:
            hits.popleft()

        last_minute = sum(1 for t in hits if now - t < MINUTE)
        if last_minute >= self.requests_per_minute:
            oldest_in_minute = next(t for t in hits if now - t < MINUTE)
            return max(1, int(MINUTE - (now - oldest_in_minute)))
        if len(hits) >= self.requests_per_hour:
            return max(1, int(HOUR - (now - hits[0])))

        hits.append(now)
        return None

    def _cleanup(self, now: float):
        for ip in list(self.hits.keys()):
            hits = self.hits[ip]
            while hits and now - hits[0] >= HOUR:
                hits.popleft()
            if not hits:
                del self.hits[ip]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # No CSP: API responses only, and docs pages load their assets from a CDN
        return response


def setup_cors(app, allowed_origins: List[str], allow_credentials: bool = True):
    """
    Setup CORS middleware for the web client.

    Args:
        app: FastAPI application
        allowed_origins: List of allowed origins ("*" disables credentials)
        allow_credentials: Allow cookies/authorization headers cross-origin
    """
    if "*" in allowed_origins:
        allow_credentials = False
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=allow_credentials,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )


def setup_trusted_hosts(app, allowed_hosts: List[str]):
    """Reject requests whose Host header is not in allowed_hosts."""
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=allowed_hosts)
