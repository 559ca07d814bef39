class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced marshal, employee or session does not exist."""


class StoreUnavailableError(DomainError):
    """Raised when the persistent store cannot be reached."""


class WriteRejectedError(DomainError):
    """Raised when the store refuses a write (constraint violation, missing parent row)."""
