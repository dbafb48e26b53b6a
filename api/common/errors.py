"""
Error taxonomy for the sales API and its mapping to HTTP responses.

Every handler maps failures to one of these classes at the boundary. Messages
are user facing and written in Spanish.
"""
from typing import Any, Optional

from fastapi.responses import JSONResponse
from starlette import status

from api.common.config import is_production


class SalesError(Exception):
    """Base class for errors that carry their own HTTP status code."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Any = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details
        if status_code is not None:
            self.status_code = status_code


class ValidationError(SalesError):
    """Malformed or missing input."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(SalesError):
    """Missing or invalid bearer credential."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(SalesError):
    """Wrong role or unauthorized proxy seller."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(SalesError):
    """Unresolved product or seller reference."""
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(SalesError):
    """Unexpected store or rendering failure."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(exc: SalesError) -> dict:
    """Build the JSON body for an error; details are hidden in production."""
    body = {"success": False, "error": exc.message}
    if exc.field:
        body["field"] = exc.field
    if exc.details is not None and not is_production():
        body["details"] = exc.details
    return body


def error_response(exc: SalesError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc))
