"""Application error taxonomy and the FastAPI handlers that render it."""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error.

    Every subclass carries an HTTP status, a stable error code and a
    human readable message. ``retryable`` marks the errors a caller may
    safely retry without changing the request.
    """

    status_code: int = 500
    error_code: str = "InternalError"
    retryable: bool = False

    def __init__(self, message: str = None, error_code: str = None):
        self.message = message or self.__class__.__doc__.strip().splitlines()[0]
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "status": self.status_code,
            "errorCode": self.error_code,
            "message": self.message,
        }


# ------------------------------
# Validation (400)
# ------------------------------
class ValidationError(AppError):
    """Invalid input."""

    status_code = 400
    error_code = "ValidationError"


class InvalidDateRange(ValidationError):
    """Start date must not be after the due date."""

    error_code = "InvalidDateRange"


class InvalidTitle(ValidationError):
    """Title must not be empty."""

    error_code = "InvalidTitle"


class InvalidTag(ValidationError):
    """Tag must be non-empty and contain no whitespace."""

    error_code = "InvalidTag"


class InvalidSearchInput(ValidationError):
    """Invalid search filters."""

    error_code = "InvalidSearchInput"


class ScopeMismatch(ValidationError):
    """Release and milestone belong to different projects."""

    error_code = "ScopeMismatch"


# ------------------------------
# Conflict (409)
# ------------------------------
class ConflictError(AppError):
    """Request conflicts with the current state."""

    status_code = 409
    error_code = "Conflict"


class DuplicateTitle(ConflictError):
    """A milestone with this title already exists in this scope."""

    error_code = "DuplicateTitle"


class DuplicateTag(ConflictError):
    """A release with this tag already exists in this project."""

    error_code = "DuplicateTag"


class AlreadyAssociated(ConflictError):
    """Release is already associated with a milestone."""

    error_code = "AlreadyAssociated"


class AlreadyClosed(ConflictError):
    """Milestone is already closed."""

    error_code = "AlreadyClosed"


# ------------------------------
# Not found (404)
# ------------------------------
class NotFoundError(AppError):
    """Resource not found."""

    status_code = 404
    error_code = "NotFound"


class MilestoneNotFound(NotFoundError):
    """Milestone not found."""

    error_code = "MilestoneNotFound"


class ReleaseNotFound(NotFoundError):
    """Release not found."""

    error_code = "ReleaseNotFound"


# ------------------------------
# Auth (401 / 403)
# ------------------------------
class NotAuthenticated(AppError):
    """Not authenticated."""

    status_code = 401
    error_code = "NotAuthenticated"


class PermissionDenied(AppError):
    """Actor lacks access to this scope."""

    status_code = 403
    error_code = "PermissionDenied"


# ------------------------------
# Store / collaborators (409 / 503)
# ------------------------------
class ConcurrencyError(AppError):
    """Concurrent modification detected, retry the request."""

    status_code = 409
    error_code = "ConcurrencyError"
    retryable = True


class StoreTimeoutError(ConcurrencyError):
    """Store did not answer in time, retry the request."""

    status_code = 503
    error_code = "StoreTimeout"


class DependencyError(AppError):
    """External dependency unavailable."""

    status_code = 503
    error_code = "DependencyError"


class StoreUnavailableError(DependencyError):
    """Persistent store unavailable."""

    error_code = "StoreUnavailable"


def register_exception_handlers(app: FastAPI) -> None:
    """Register the structured error handlers with a FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        level = logging.ERROR if exc.status_code >= 500 else logging.INFO
        logger.log(level, f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}: {exc.message}")
        headers = {"Retry-After": "1"} if exc.retryable else None
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.error(f"Validation Error: {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content={
                "status": 422,
                "errorCode": "RequestValidationError",
                "message": "Request validation failed",
                "details": jsonable_errors(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"🔥 Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "status": 500,
                "errorCode": "InternalError",
                "message": "Internal server error",
            },
        )


def jsonable_errors(errors) -> list:
    """Strip non-serializable context (e.g. exception objects) from pydantic errors."""
    cleaned = []
    for error in errors:
        item = {k: v for k, v in error.items() if k != "ctx"}
        if "ctx" in error:
            item["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        cleaned.append(item)
    return cleaned
