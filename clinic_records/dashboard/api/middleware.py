"""Middleware configuration for the records API.

This module sets up middleware for request logging, error handling and
security headers.
"""

import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from clinic_records.dashboard.api.security import SecurityHeadersMiddleware
from clinic_records.domain.ports import RecordValidationError, StorageUnavailableError
from clinic_records.infrastructure.settings import Settings

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Log request and response details.

        Parameters:
            request: Incoming HTTP request
            call_next: Next middleware or route handler

        Returns:
            Response: HTTP response with X-Process-Time header
        """
        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            f"{request.method} {request.url.path} - Client: {client_ip}",
            extra={"client_ip": client_ip, "endpoint": request.url.path}
        )

        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.3f}"

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.3f}s",
            extra={"endpoint": request.url.path, "status_code": response.status_code}
        )
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware for global error handling.

    Exceptions that escape a route become JSON error bodies. Storage
    outages map to 503, domain validation failures to 400, anything else
    to a generic 500 that does not leak internals.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except StorageUnavailableError as e:
            logger.error(f"Storage unavailable during {e.operation}: {str(e)}")
            return JSONResponse(
                status_code=503,
                content={
                    "error": "Service Unavailable",
                    "detail": "Record storage is temporarily unavailable"
                }
            )
        except RecordValidationError as e:
            logger.warning(f"Validation error: {str(e)}")
            return JSONResponse(
                status_code=400,
                content={"error": "Bad Request", "detail": str(e)}
            )
        except Exception as e:
            logger.error(f"Unexpected error: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "detail": "An unexpected error occurred. Please check logs for details."
                }
            )


def setup_middleware(app: FastAPI, app_settings: Settings) -> None:
    """Setup application middleware.

    Parameters:
        app: FastAPI application instance
        app_settings: Application settings (HSTS flag)

    Middleware Order (outermost last):
        1. ErrorHandlingMiddleware - Handles errors
        2. LoggingMiddleware - Logs requests/responses
        3. SecurityHeadersMiddleware - Adds security headers to every
           response, error bodies included
    """
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=app_settings.enable_hsts)
