"""Security middleware and utilities for the records API.

This module provides the bearer-token check required by the record and
statistics routes, plus the standard security response headers.

Security Impact:
    - Requests without a bearer token are rejected with 401
    - When CR_API_TOKEN is configured, tokens are compared in constant time
    - Security headers protect against common browser vulnerabilities
"""

import logging
import secrets
from typing import Annotated, Callable, Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.middleware.base import BaseHTTPMiddleware

from clinic_records.dashboard.api.dependencies import SettingsDep

logger = logging.getLogger(__name__)

DOCS_PATHS = ("/api/docs", "/api/redoc")

bearer_scheme = HTTPBearer(auto_error=False, description="Dashboard session token")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_bearer_token(
    request: Request,
    app_settings: SettingsDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> str:
    """Require an ``Authorization: Bearer <token>`` header.

    Any non-empty token is accepted unless the application settings carry
    an ``api_token``, in which case the token must equal it.

    Parameters:
        request: Incoming request
        app_settings: Running application settings
        credentials: Parsed Authorization header, if any

    Returns:
        str: The accepted token

    Raises:
        HTTPException: 401 if the token is missing, empty or wrong
    """
    if credentials is None or not credentials.credentials.strip():
        logger.warning(f"Missing bearer token for {request.method} {request.url.path}")
        raise _unauthorized("Not authenticated")

    token = credentials.credentials.strip()
    expected = app_settings.api_token
    if expected and not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning(f"Invalid bearer token for {request.method} {request.url.path}")
        raise _unauthorized("Invalid token")

    return token


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware for adding security headers to every response."""

    def __init__(self, app, enable_hsts: bool = False):
        """Initialize security headers middleware.

        Parameters:
            app: FastAPI application
            enable_hsts: Enable HSTS header (use in production with HTTPS)
        """
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        security_headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
        }

        # interactive docs load their assets from a CDN
        if not request.url.path.startswith(DOCS_PATHS):
            security_headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # HSTS only behind HTTPS
        if self.enable_hsts:
            security_headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        for header, value in security_headers.items():
            response.headers[header] = value

        return response
