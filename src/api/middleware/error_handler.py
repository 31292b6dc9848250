"""Global error handling middleware for consistent error responses."""

import logging
import traceback
from typing import Any, Callable

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


class APIError(Exception):
    """Base exception for API errors.

    Raise a subclass to return a specific status code and message
    to the client.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "api_error"

    def __init__(self, message: str) -> None:
        """Initialize API error.

        Args:
            message: Human-readable error message returned to the client.
        """
        self.message = message
        super().__init__(message)


class ValidationError(APIError):
    """Missing or malformed request fields."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "validation_error"

    def __init__(self, message: str = "Validation error") -> None:
        super().__init__(message)


class NotFoundError(APIError):
    """Resource not found error."""

    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class ConflictError(APIError):
    """Request conflicts with the current state, e.g. paying a paid order."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "conflict"

    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message)


class GatewayError(APIError):
    """Payment provider rejected the call or could not be reached.

    The provider message is passed through to the client.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "gateway_error"

    def __init__(self, message: str = "Payment provider error") -> None:
        super().__init__(message)


class AuthenticationError(APIError):
    """Authentication failure error."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "authentication_error"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class InternalError(APIError):
    """Unexpected failure; detail is logged, the client sees a generic message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "internal_error"

    def __init__(self, message: str = GENERIC_ERROR_MESSAGE) -> None:
        super().__init__(message)


def create_error_response(message: str, status_code: int) -> JSONResponse:
    """Create a standardized JSON error response.

    Args:
        message: Human-readable error description.
        status_code: HTTP status code.

    Returns:
        JSONResponse: Formatted error response.
    """
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(mode="json"),
    )


def _format_validation_errors(errors: list[dict[str, Any]]) -> str:
    fields = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        if field not in fields:
            fields.append(field)
    return f"Missing or invalid fields: {', '.join(fields)}"


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render pydantic request validation failures as 400 errors."""
    message = _format_validation_errors(exc.errors())
    logger.warning("Request validation failed: %s %s - %s", request.method, request.url.path, message)
    return create_error_response(message, status.HTTP_400_BAD_REQUEST)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown routes, bad methods) in the envelope."""
    message = "Not found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
    return create_error_response(message, exc.status_code)


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Middleware to catch and format all exceptions.

    Logs full stack traces for debugging while returning safe messages to clients.

    Args:
        request: The incoming request.
        call_next: Next middleware or route handler.

    Returns:
        Response: Either the successful response or formatted error response.
    """
    request_id = request.headers.get("X-Request-ID")

    try:
        return await call_next(request)

    except InternalError as e:
        logger.error(
            "Internal error: %s\n%s",
            e.message,
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(GENERIC_ERROR_MESSAGE, e.status_code)

    except APIError as e:
        logger.warning(
            "API error: %s - %s",
            e.error_type,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(e.message, e.status_code)

    except Exception as e:
        logger.error(
            "Unhandled exception: %s\n%s",
            str(e),
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(GENERIC_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)
