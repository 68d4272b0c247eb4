"""Logging middleware and configuration."""

import logging
import sys
import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from gametracker.config import settings

REQUEST_ID_HEADER = "X-Request-ID"

# Scraped every few seconds; logging them drowns out real traffic
QUIET_PATHS = frozenset({"/metrics"})

# Third-party loggers that report every outbound call at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def configure_logging() -> None:
    """Configure structlog on top of stdlib logging."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with its outcome and duration under a request id."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """
        Bind request context, then log the request and its response.

        The incoming ``X-Request-ID`` is reused when present and echoed back.

        Args:
            request: Request object
            call_next: Next middleware in chain

        Returns:
            Response object
        """
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        logger = structlog.get_logger("gametracker.http")
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        start_time = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        logger.info("request_started", client=request.client.host if request.client else None)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("request_failed", error=str(e), duration=round(time.perf_counter() - start_time, 6))
            raise

        duration = time.perf_counter() - start_time
        log = logger.warning if response.status_code >= 500 else logger.info
        log("request_completed", status_code=response.status_code, duration=round(duration, 6))

        response.headers["X-Process-Time"] = f"{duration:.6f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
