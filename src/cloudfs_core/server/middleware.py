"""Authentication middleware for the store server."""

import secrets
from typing import Any, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response


class BearerTokenMiddleware(BaseHTTPMiddleware):
    """Middleware requiring a shared bearer token.

    Unauthenticated paths can be configured (e.g., /health).
    """

    def __init__(
        self,
        app: Any,
        token: str,
        public_paths: list[str] | None = None,
    ) -> None:
        """Initialize bearer token middleware.

        Args:
            app: The ASGI application
            token: Token every request must present
            public_paths: Paths that don't require authentication
        """
        super().__init__(app)
        self.token = token
        self.public_paths = set(public_paths or ["/health"])

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        """Reject requests without the expected token."""
        if request.url.path in self.public_paths:
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                {"error": "unauthorized", "message": "Missing or invalid Authorization header"},
                status_code=401,
            )

        if not secrets.compare_digest(auth_header[7:], self.token):
            return JSONResponse(
                {"error": "unauthorized", "message": "Invalid token"},
                status_code=401,
            )

        return await call_next(request)
