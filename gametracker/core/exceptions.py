"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "INTERNAL_ERROR",
        extra: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and machine-readable code."""
        self.message = message
        self.status_code = status_code
        self.code = code
        self.extra = extra or {}
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404, code=code)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized", code: str = "UNAUTHORIZED"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401, code=code)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden", code: str = "FORBIDDEN"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403, code=code)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request", code: str = "BAD_REQUEST"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, code=code)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict", code: str = "CONFLICT"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, code=code)


class RateLimitException(AppException):
    """Rate limit exceeded exception."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        code: str = "RATE_LIMITED",
        extra: dict[str, Any] | None = None,
    ):
        """Initialize with 429 status code."""
        super().__init__(message, status_code=429, code=code, extra=extra)


class UpstreamServiceException(AppException):
    """A third-party provider call failed."""

    def __init__(self, operation: str, message: str | None = None):
        """Initialize with 502 status code and the failing operation."""
        self.operation = operation
        super().__init__(
            message or f"Upstream call failed: {operation}",
            status_code=502,
            code="UPSTREAM_ERROR",
            extra={"operation": operation},
        )
