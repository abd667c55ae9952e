"""User service: CRUD and email uniqueness business logic.

Pure business logic with no HTTP dependencies. Every outcome, including
not-found and conflicts, comes back as a ``Result``; route handlers map
failures to HTTP status codes. Structural validation (required fields,
lengths, email syntax) happens at the boundary before these methods run.
"""

import logging

from domain.model.errors import (
    DomainError,
    EmailConflictError,
    NotFoundError,
    ValidationError,
)
from domain.model.result import Result
from domain.model.user import User, UserDto, UserInput, normalize_email
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Business rules on top of a UserRepository.

    The service keeps no state besides the repository; fetched entities
    are working copies for the duration of one call.

    The email uniqueness check is check-then-act and not atomic. Two
    concurrent creates with the same email can both pass ``get_by_email``;
    the repository's own uniqueness guard then rejects the second write,
    which surfaces here as a conflict.
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    def list_users(self) -> Result[list[UserDto]]:
        try:
            users = self.repo.list_all()
        except DomainError as e:
            return Result.failure(e)
        return Result.success([UserDto.from_entity(u) for u in users])

    def get_user(self, user_id: int) -> Result[UserDto]:
        try:
            user = self.repo.get_by_id(user_id)
        except DomainError as e:
            return Result.failure(e)
        if user is None:
            return Result.failure(NotFoundError('User', user_id))
        return Result.success(UserDto.from_entity(user))

    def create_user(self, data: UserInput) -> Result[UserDto]:
        """Create an active user with trimmed names and a normalized email.

        Fails with EmailConflictError if any user already has the email.
        """
        email = normalize_email(data.email)
        try:
            if self.repo.get_by_email(email) is not None:
                return Result.failure(EmailConflictError(email))

            user = User.new(
                first_name=data.first_name.strip(),
                last_name=data.last_name.strip(),
                email=email,
            )
            created = self.repo.add(user)
        except DomainError as e:
            return Result.failure(e)

        logger.debug("User stored", extra={"userId": created.id})
        return Result.success(UserDto.from_entity(created))

    def update_user(self, user_id: int, data: UserInput) -> Result[UserDto]:
        """Replace names and email of an existing user.

        The conflict check only runs when the email actually changes, so a
        user can always keep its own address. The active flag is untouched.
        """
        email = normalize_email(data.email)
        try:
            existing = self.repo.get_by_id(user_id)
            if existing is None:
                return Result.failure(NotFoundError('User', user_id))

            if normalize_email(existing.email) != email:
                owner = self.repo.get_by_email(email)
                if owner is not None:
                    return Result.failure(EmailConflictError(email))

            existing.first_name = data.first_name.strip()
            existing.last_name = data.last_name.strip()
            existing.email = email
            updated = self.repo.update(existing)
        except DomainError as e:
            return Result.failure(e)

        return Result.success(UserDto.from_entity(updated))

    def delete_user(self, user_id: int) -> Result[bool]:
        try:
            return Result.success(self.repo.delete(user_id))
        except DomainError as e:
            return Result.failure(e)

    def email_exists(self, email: str) -> Result[bool]:
        if not email or not email.strip():
            return Result.failure(ValidationError("Email parameter is required", field='email'))
        try:
            user = self.repo.get_by_email(normalize_email(email))
        except DomainError as e:
            return Result.failure(e)
        return Result.success(user is not None)
