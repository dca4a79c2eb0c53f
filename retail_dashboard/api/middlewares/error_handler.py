"""
Error handling for the API

Provides centralized error handling and consistent error responses.
"""

from fastapi import Request, status, FastAPI
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException
import logging
from datetime import datetime, timezone
import traceback
import uuid

# Configure logging
logger = logging.getLogger(__name__)


def _error_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def error_body(request: Request, status_code: int, error_type: str, message, **extra) -> dict:
    """Standard error payload shared by every handler"""
    body = {
        "error_id": _error_id(request),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status_code,
        "type": error_type,
        "message": message,
        "path": str(request.url),
    }
    body.update(extra)
    return body


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle validation errors in a user-friendly way
    """
    errors = [
        {
            "location": error["loc"],
            "message": error["msg"],
            "type": error["type"]
        }
        for error in exc.errors()
    ]

    logger.warning(
        f"Validation error {_error_id(request)}: URL: {request.url} - Errors: {errors}"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "validation_error",
            "Request validation failed",
            errors=errors,
        )
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTP exceptions with consistent response format
    """
    message = f"HTTP error {_error_id(request)}: {exc.status_code} {exc.detail} - URL: {request.url}"
    if exc.status_code >= 500:
        logger.error(message)
    elif exc.status_code >= 400:
        logger.warning(message)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, "http_error", exc.detail),
        headers=getattr(exc, "headers", None)
    )


async def store_unavailable_handler(request: Request, exc: OperationalError):
    """
    Map store connectivity failures that escape a router to 503
    """
    logger.error(f"Transaction store unavailable {_error_id(request)}: {str(exc)} - URL: {request.url}")

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=error_body(
            request,
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "store_unavailable",
            "Transaction store unavailable",
        )
    )


async def general_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler for unhandled exceptions
    """
    logger.error(
        f"Unhandled exception {_error_id(request)}: {str(exc)} - URL: {request.url}"
    )
    logger.error(traceback.format_exc())

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "server_error",
            "An unexpected error occurred",
        )
    )


def add_exception_handlers(app: FastAPI):
    """
    Add all exception handlers to the FastAPI app

    Args:
        app: FastAPI application
    """
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(OperationalError, store_unavailable_handler)
    app.add_exception_handler(Exception, general_exception_handler)
