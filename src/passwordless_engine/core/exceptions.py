# core/exceptions.py

import logging
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PasswordlessEngineException(Exception):
    def __init__(
        self, message: str, error_code: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class BadInputError(PasswordlessEngineException):
    """Malformed, missing or conflicting request fields. Always a 400."""

    def __init__(self, message: str):
        super().__init__(message, error_code="BAD_INPUT_ERROR")


class ConfigurationError(PasswordlessEngineException):
    """Invalid recipe configuration. Raised at startup, never per request."""

    def __init__(self, message: str):
        super().__init__(message, error_code="CONFIGURATION_ERROR")


class RecipeAlreadyInitialisedError(ConfigurationError):
    def __init__(
        self,
        message: str = (
            "passwordless recipe has already been initialised. Please check your code for bugs"
        ),
    ):
        super().__init__(message)


class RecipeNotInitialisedError(ConfigurationError):
    def __init__(
        self,
        message: str = "initialisation not done. Did you forget to install the passwordless recipe?",
    ):
        super().__init__(message)


class CoreRequestError(PasswordlessEngineException):
    """The auth core was unreachable, answered non-200, or sent an unusable payload."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(
            message,
            error_code="CORE_REQUEST_ERROR",
            details={"path": path, "status_code": status_code},
        )
        self.path = path
        self.status_code = status_code


class DeliveryError(PasswordlessEngineException):
    def __init__(self, message: str = "Failed to deliver the passwordless login message"):
        super().__init__(message, error_code="DELIVERY_ERROR")


# HTTP exception handlers
async def bad_input_error_handler(request: Request, exc: Exception) -> JSONResponse:
    message = exc.message if isinstance(exc, PasswordlessEngineException) else str(exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"status": "BAD_INPUT_ERROR", "message": message},
    )


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error"},
    )
