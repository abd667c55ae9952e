"""Pydantic models for API request/response.

JSON field names are camelCase (``firstName``); snake_case input is
accepted as well.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from domain.model.user import UserDto, UserInput

NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 100


class CamelModel(BaseModel):
    """Base model serializing fields under camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateUserRequest(CamelModel):
    """Request body for creating or replacing a user."""
    first_name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH, description="First name")
    last_name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH, description="Last name")
    email: EmailStr = Field(..., description="Email address")

    @field_validator('first_name', 'last_name')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator('email', mode='before')
    @classmethod
    def check_email_length(cls, v):
        if isinstance(v, str) and len(v.strip()) > EMAIL_MAX_LENGTH:
            raise ValueError(f"Email cannot exceed {EMAIL_MAX_LENGTH} characters")
        return v

    def to_input(self) -> UserInput:
        return UserInput(first_name=self.first_name, last_name=self.last_name, email=str(self.email))


class UserResponse(CamelModel):
    """Response model for a user."""
    id: int = Field(..., description="User ID")
    first_name: str
    last_name: str
    email: str
    created_at: datetime
    is_active: bool
    full_name: str = Field(..., description="First and last name joined by a space")

    @classmethod
    def from_dto(cls, dto: UserDto) -> "UserResponse":
        return cls(
            id=dto.id,
            first_name=dto.first_name,
            last_name=dto.last_name,
            email=dto.email,
            created_at=dto.created_at,
            is_active=dto.is_active,
            full_name=dto.full_name,
        )


class FieldError(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Body returned with 400 for malformed requests."""
    detail: str = "Validation failed"
    errors: list[FieldError] = Field(default_factory=list)
