"""
GoldBod Assay Office - Custom Exceptions
=========================================
Business-level exceptions that can be caught and converted to HTTP responses.
"""

from fastapi import status


class AssayOfficeError(Exception):
    """Base exception for all business logic errors."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An unexpected error occurred."):
        self.message = message
        super().__init__(self.message)


class AuthenticationError(AssayOfficeError):
    """Raised when authentication fails."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AssayOfficeError):
    """Raised when user lacks permission."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AssayOfficeError):
    """Raised when a requested resource doesn't exist."""
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateError(AssayOfficeError):
    """Raised for unique constraint violations at the business level."""
    status_code = status.HTTP_409_CONFLICT


class LockedError(AssayOfficeError):
    """Raised when a record can no longer be changed (valued or paid)."""
    status_code = status.HTTP_409_CONFLICT


class BusinessRuleError(AssayOfficeError):
    """Raised when a request is well-formed but violates a workflow rule."""
    pass

