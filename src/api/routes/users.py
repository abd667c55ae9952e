"""User CRUD routes.

Endpoints:
- GET /api/users: List users
- GET /api/users/email-exists?email=: Check whether an email is taken
- GET /api/users/{id}: Get a user
- POST /api/users: Create a user
- PUT /api/users/{id}: Replace a user's names and email
- DELETE /api/users/{id}: Delete a user
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Response, status

from api.dependencies import get_user_service
from api.models import CreateUserRequest, UserResponse
from domain.model.errors import (
    DomainError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from domain.model.user import MAX_USER_ID
from services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

UserId = Annotated[int, Path(gt=0, le=MAX_USER_ID, description="User ID (positive 64-bit integer)")]


def _raise_http(error: DomainError, action: str) -> None:
    """Map a failed service Result to an HTTPException.

    Storage errors get an opaque message; details only go to the log.
    """
    if isinstance(error, ValidationError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, NotFoundError):
        logger.warning("User not found", extra={"userId": error.key, "action": action})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, DuplicateError):
        logger.warning("Email conflict", extra={"email": getattr(error, 'email', None), "action": action})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))

    logger.error(f"Error occurred while {action}", exc_info=error)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"An error occurred while {action}",
    )


@router.get("", response_model=list[UserResponse])
def list_users(service: UserService = Depends(get_user_service)):
    """List all users."""
    result = service.list_users()
    if not result.ok:
        _raise_http(result.error, "retrieving users")
    return [UserResponse.from_dto(dto) for dto in result.value]


@router.get("/email-exists", response_model=bool)
def email_exists(email: str | None = None, service: UserService = Depends(get_user_service)):
    """Return whether any user has this email (case-insensitive)."""
    result = service.email_exists(email or "")
    if not result.ok:
        _raise_http(result.error, "checking email")
    return result.value


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: UserId, service: UserService = Depends(get_user_service)):
    """Get a user by ID."""
    result = service.get_user(user_id)
    if not result.ok:
        _raise_http(result.error, "retrieving the user")
    return UserResponse.from_dto(result.value)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request: CreateUserRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
):
    """Create a user. 409 if the email is already registered."""
    result = service.create_user(request.to_input())
    if not result.ok:
        _raise_http(result.error, "creating the user")

    user = result.value
    response.headers["Location"] = f"{router.prefix}/{user.id}"
    logger.info("User created", extra={"userId": user.id, "email": user.email})
    return UserResponse.from_dto(user)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    request: CreateUserRequest,
    user_id: UserId,
    service: UserService = Depends(get_user_service),
):
    """Replace first name, last name and email of a user."""
    result = service.update_user(user_id, request.to_input())
    if not result.ok:
        _raise_http(result.error, "updating the user")

    logger.info("User updated", extra={"userId": user_id})
    return UserResponse.from_dto(result.value)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: UserId, service: UserService = Depends(get_user_service)):
    """Delete a user. 404 if nothing was deleted."""
    result = service.delete_user(user_id)
    if not result.ok:
        _raise_http(result.error, "deleting the user")
    if not result.value:
        logger.warning("User not found for deletion", extra={"userId": user_id})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User with ID {user_id} not found")

    logger.info("User deleted", extra={"userId": user_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
