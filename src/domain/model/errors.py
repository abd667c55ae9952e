"""Domain-level errors.

Repositories raise these to signal storage outcomes the caller must handle.
Services never let them escape: they are carried inside a ``Result`` and
route handlers map them to HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} with ID {key} not found")


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class EmailConflictError(DuplicateError):
    """Email address is already used by another user."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"A user with email '{email}' already exists.")


class ValidationError(DomainError):
    """Input violates a validation rule."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class StorageError(DomainError):
    """Backing store failed unexpectedly."""
