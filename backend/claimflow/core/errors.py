"""Domain error taxonomy.

Services raise these; ``register_exception_handlers`` translates them into
``{"detail": ...}`` JSON responses with the mapped HTTP status.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ClaimflowError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ClaimflowError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(ClaimflowError):
    """A decision was attempted on a claim that is no longer Pending."""

    status_code = status.HTTP_409_CONFLICT


class StaleStateError(InvalidStateError):
    """The claim moved on between read and write (concurrent decision)."""


class ValidationError(ClaimflowError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ClaimflowError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(ClaimflowError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AccountDisabledError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN


class PermissionDeniedError(ClaimflowError):
    status_code = status.HTTP_403_FORBIDDEN


async def claimflow_error_handler(request: Request, exc: ClaimflowError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "%s %s -> %s (%s)",
            request.method, request.url.path, exc.status_code, exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s %s — %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClaimflowError, claimflow_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
