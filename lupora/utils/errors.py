"""
Error taxonomy for the API.

Each error is an ``HTTPException`` so services can raise them exactly where
FastAPI code would raise ``HTTPException``; the handler in ``lupora.main``
renders every one of them as ``{"message": detail}``.
"""
from typing import Dict, Optional
from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        super().__init__(
            status_code=self.status_code,
            detail=message or self.default_message,
            headers=headers,
        )

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Access denied. No token provided."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid or expired token"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class ServiceUnavailableError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service unavailable"


class InternalError(AppError):
    """Unexpected failure. The message is always generic."""

    def __init__(self):
        super().__init__(self.default_message)
