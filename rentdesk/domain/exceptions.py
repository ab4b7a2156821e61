"""Domain-specific exceptions"""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class BackendError(DomainException):
    """Hosted backend returned an error or is unavailable"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotAuthenticatedError(DomainException):
    """Missing, expired or rejected session token"""

    pass


class ValidationError(DomainException):
    """User input rejected before reaching the backend"""

    pass


class OverpayError(ValidationError):
    """Payment amount exceeds the outstanding due"""

    def __init__(self, message: str, limit: float, requires_confirmation: bool = False):
        super().__init__(message)
        self.limit = limit
        self.requires_confirmation = requires_confirmation


class NotFoundError(DomainException):
    """Requested record does not exist"""

    pass


class ConflictError(DomainException):
    """Operation cannot proceed in the current state"""

    pass
