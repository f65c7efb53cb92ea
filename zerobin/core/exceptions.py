"""
Custom exceptions and global exception handlers for ZeroBin.
Every failure of the external API, the image host or a client-side flow is
normalised into one of the classes defined here.
"""
from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


# ── Custom exception classes ──────────────────────────────────────────────────

class ZeroBinException(Exception):
    """Base exception for all ZeroBin errors."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str | None = None,
        details: Any = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.error_code = error_code or "ZEROBIN_ERROR"
        self.details = details
        super().__init__(detail)


class NetworkError(ZeroBinException):
    """The request never produced an HTTP response (connection error, timeout)."""

    def __init__(self, detail: str = "Network error - please check your connection") -> None:
        super().__init__(
            status_code=0,
            detail=detail,
            error_code="NETWORK_ERROR",
        )


class ApiError(ZeroBinException):
    """The external API answered with a non-success status."""

    def __init__(self, status_code: int, detail: str, details: Any = None) -> None:
        super().__init__(
            status_code=status_code,
            detail=detail,
            error_code="API_ERROR",
            details=details,
        )


class NonJsonResponseError(ZeroBinException):
    """A JSON endpoint returned something else, usually an HTML error page."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(
            status_code=status_code,
            detail=body[:200],
            error_code="NON_JSON_RESPONSE",
            details=body,
        )


class MalformedResponseError(ZeroBinException):
    """The body was JSON but did not have the expected shape."""

    def __init__(self, resource: str, details: Any = None) -> None:
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Unexpected {resource} response from server",
            error_code="MALFORMED_RESPONSE",
            details=details,
        )


class UploadError(ZeroBinException):
    def __init__(self, detail: str, status_code: int = 0) -> None:
        super().__init__(
            status_code=status_code,
            detail=detail,
            error_code="UPLOAD_FAILED",
        )


class FraudDetectedError(ZeroBinException):
    """Image analysis rejected the photo as downloaded or AI generated."""

    def __init__(self, details: dict[str, Any]) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=details.get("message") or "Image fraud detected",
            error_code="FRAUD_DETECTED",
            details=details,
        )


class WeightValidationError(ZeroBinException):
    """Entered pickup weight is outside what the listing's device can weigh."""

    def __init__(self, details: dict[str, Any]) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=details.get("message") or "Weight validation failed",
            error_code="WEIGHT_VALIDATION_FAILED",
            details=details,
        )


class MutationFailedError(ZeroBinException):
    def __init__(self, detail: str, cause: ZeroBinException | None = None) -> None:
        super().__init__(
            status_code=cause.status_code if cause else 0,
            detail=detail,
            error_code="MUTATION_FAILED",
            details=cause.details if cause else None,
        )


class ValidationFailedError(ZeroBinException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR",
        )


class InvalidTransitionError(ZeroBinException):
    def __init__(self, current: str, action: str) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} while in state {current!r}",
            error_code="INVALID_TRANSITION",
        )


class StatusRegressionError(ZeroBinException):
    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Status cannot move from {current!r} back to {requested!r}",
            error_code="STATUS_REGRESSION",
        )


class NotFoundException(ZeroBinException):
    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        detail = f"{resource} not found"
        if resource_id:
            detail = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND",
        )


class UnauthorizedException(ZeroBinException):
    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
        )


class ServiceNotConfiguredException(ZeroBinException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="NOT_CONFIGURED",
        )


# ── Exception handlers ────────────────────────────────────────────────────────

def _error_response(status_code: int, detail: str, error_code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_code,
            "detail": detail,
        },
    )


async def zerobin_exception_handler(
    request: Request, exc: ZeroBinException
) -> JSONResponse:
    # Transport failures have no HTTP status of their own
    status_code = exc.status_code or status.HTTP_502_BAD_GATEWAY
    return _error_response(status_code, exc.detail, exc.error_code)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({"field": field, "message": error["msg"]})
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "VALIDATION_ERROR",
            "detail": "Request validation failed",
            "errors": errors,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected internal server error occurred",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI application."""
    app.add_exception_handler(ZeroBinException, zerobin_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
