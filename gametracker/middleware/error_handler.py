"""Exception handlers translating errors into JSON responses."""

import structlog
from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from gametracker.config import settings
from gametracker.core.exceptions import AppException

logger = structlog.get_logger(__name__)


def _error_body(message: str, code: str, **extra: object) -> dict:
    return {"error": message, "code": code, **extra}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom application exceptions.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        JSON error response
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "app_exception",
        method=request.method,
        path=request.url.path,
        status_code=exc.status_code,
        code=exc.code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(_error_body(exc.message, exc.code, **exc.extra)),
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle HTTP exceptions raised by the framework (404 routes, 405 methods)."""
    logger.warning(
        "http_exception",
        method=request.method,
        path=request.url.path,
        status_code=exc.status_code,
        error=str(exc.detail),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), f"HTTP_{exc.status_code}"),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handle validation errors.

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        400 response listing the offending fields
    """
    details = []
    for error in exc.errors():
        # Drop the "body"/"query"/"path" location prefix
        location = [str(part) for part in error.get("loc", ())[1:]]
        details.append({"field": ".".join(location), "message": error.get("msg", "")})

    logger.warning(
        "validation_failed",
        method=request.method,
        path=request.url.path,
        details=details,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Validation failed", "VALIDATION_ERROR", details=details),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Handle unique and foreign key violations that slipped past service checks."""
    logger.warning(
        "integrity_error",
        method=request.method,
        path=request.url.path,
        error=str(exc.orig),
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body("Resource already exists", "DUPLICATE_ENTRY"),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: Request object
        exc: Exception

    Returns:
        JSON error response
    """
    logger.error(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    message = "Internal server error" if settings.is_production else str(exc) or "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(message, "INTERNAL_ERROR"),
    )
