"""User domain models."""

from dataclasses import dataclass
from datetime import datetime

# Largest ID a store accepts; MongoDB integers are signed 64-bit
MAX_USER_ID = 2**63 - 1


def normalize_email(email: str) -> str:
    """Canonical stored form of an email address."""
    return email.strip().lower()


@dataclass
class User:
    """Domain model representing a stored user."""
    id: int | None
    first_name: str
    last_name: str
    email: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_active: bool = True

    @classmethod
    def new(cls, first_name: str, last_name: str, email: str) -> "User":
        """Build an unsaved user. The store assigns id and timestamps."""
        return cls(
            id=None,
            first_name=first_name,
            last_name=last_name,
            email=email,
        )


@dataclass(frozen=True)
class UserInput:
    """First/last name and email as received from the caller."""
    first_name: str
    last_name: str
    email: str


@dataclass(frozen=True)
class UserDto:
    """Outward view of a user. ``updated_at`` is deliberately absent."""
    id: int
    first_name: str
    last_name: str
    email: str
    created_at: datetime
    is_active: bool
    full_name: str

    @classmethod
    def from_entity(cls, user: User) -> "UserDto":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            created_at=user.created_at,
            is_active=user.is_active,
            full_name=f"{user.first_name} {user.last_name}",
        )
