from typing import Protocol
from domain.model.user import User


class UserRepository(Protocol):
    """Protocol defining the interface for user data access.

    Implementations return copies: mutating a returned User never changes
    the stored record until it is passed back to ``update``.
    """
    def list_all(self) -> list[User]:
        """Return all users. Order is implementation-defined."""
        ...

    def get_by_id(self, user_id: int) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email, case-insensitively. Return User or None."""
        ...

    def add(self, user: User) -> User:
        """Assign an ID and timestamps, persist, and return the stored user.

        Raises:
            EmailConflictError: the store already holds this email
            StorageError: the store failed
        """
        ...

    def update(self, user: User) -> User:
        """Overwrite names, email and active flag of an existing user.

        Raises:
            NotFoundError: no user with ``user.id``
            EmailConflictError: another user holds the new email
            StorageError: the store failed
        """
        ...

    def delete(self, user_id: int) -> bool:
        """Hard-delete a user. Return True if a record was removed."""
        ...
