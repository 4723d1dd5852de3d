from typing import List, Optional
from uuid import UUID

from pydantic import field_validator

from app.models.user import User
from app.schemas.scan import CamelModel


class SignupRequest(CamelModel):
    """Fields are checked by the route so that missing ones answer 400"""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None


class VerifyOtpRequest(CamelModel):
    otp: Optional[str] = None

    @field_validator("otp", mode="before")
    @classmethod
    def otp_as_text(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ChangePasswordRequest(CamelModel):
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None


class UpdateUserRequest(CamelModel):
    """Partial profile update - only provided fields change"""
    username: Optional[str] = None
    health_condition: Optional[List[str]] = None
    allergies: Optional[List[str]] = None


class UserResponse(CamelModel):
    id: UUID
    username: str
    email: str
    health_condition: List[str] = []
    allergies: List[str] = []
    is_verified: bool = False

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            health_condition=list(user.health_conditions or []),
            allergies=list(user.allergies or []),
            is_verified=bool(user.is_verified),
        )
