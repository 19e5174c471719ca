class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class StaleSessionError(ValidationError):
    """Raised when an open session is older than the checkout grace window."""

    def __init__(self, message: str, *, session_date: str):
        super().__init__(message)
        self.session_date = session_date


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """Raised when the stored state changed under the caller (re-fetch before retrying)."""

    status_code = 409


class AuthenticationError(DomainError):
    status_code = 401
