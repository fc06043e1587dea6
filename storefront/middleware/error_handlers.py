"""
Application exception handlers.

Paths under ``/api/`` get JSON ``error_response`` bodies; every other path
gets the rendered error page.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.utils import error_response
from storefront.rendering import render_page

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"

DEFAULT_MESSAGES = {
    status.HTTP_400_BAD_REQUEST: "Bad request.",
    status.HTTP_401_UNAUTHORIZED: "You must be logged in to access this page.",
    status.HTTP_403_FORBIDDEN: "Access denied.",
    status.HTTP_404_NOT_FOUND: "Page not found.",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed.",
    status.HTTP_500_INTERNAL_SERVER_ERROR: "Something went wrong. Please try again.",
}


def _split_detail(status_code: int, detail: Any) -> tuple:
    """(message, code, details) from an HTTPException detail."""
    if isinstance(detail, dict):
        return (
            detail.get("message") or DEFAULT_MESSAGES.get(status_code, "Error"),
            detail.get("code"),
            detail.get("details"),
        )
    if isinstance(detail, str) and detail:
        # Starlette's own 404/405 carry the reason phrase
        return DEFAULT_MESSAGES.get(status_code, detail), None, None
    return DEFAULT_MESSAGES.get(status_code, "Error"), None, None


async def _respond(
    request: Request,
    status_code: int,
    message: str,
    code: Optional[str] = None,
    details: Any = None,
    debug_detail: Optional[str] = None,
    headers: Optional[dict] = None,
):
    if request.url.path.startswith(API_PREFIX):
        return JSONResponse(
            status_code=status_code,
            content=error_response(message, code=code, details=details),
            headers=headers,
        )

    response = await render_page(
        request,
        "error.html",
        {"status_code": status_code, "message": message, "detail": debug_detail},
        status_code=status_code,
    )
    if headers:
        response.headers.update(headers)
    return response


def register_exception_handlers(app: FastAPI, is_production: bool = True) -> None:
    """
    Register exception handlers for the application.

    Args:
        app: FastAPI application instance
        is_production: Hide exception text from error pages
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message, code, details = _split_detail(exc.status_code, exc.detail)
        return await _respond(
            request,
            exc.status_code,
            message,
            code=code,
            details=details,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [error.get("msg") for error in exc.errors()]
        return await _respond(
            request,
            status.HTTP_400_BAD_REQUEST,
            "Invalid request.",
            code="VALIDATION_ERROR",
            details={"errors": errors},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return await _respond(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            DEFAULT_MESSAGES[status.HTTP_500_INTERNAL_SERVER_ERROR],
            code="INTERNAL_ERROR",
            details=None if is_production else {"exception": str(exc)},
            debug_detail=None if is_production else f"{type(exc).__name__}: {exc}",
        )
