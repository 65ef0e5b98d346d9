from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from lupora.schemas.common import CamelModel, SanitizedStr


class UserRegister(CamelModel):
    name: SanitizedStr = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("email", mode="after")
    @classmethod
    def _lowercase_email(cls, value: str) -> str:
        return value.strip().lower()


class UserLogin(CamelModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email", mode="after")
    @classmethod
    def _lowercase_email(cls, value: str) -> str:
        return value.strip().lower()


class ProfileUpdate(CamelModel):
    name: SanitizedStr = Field(..., min_length=2, max_length=50)


class ChangePassword(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    created_at: Optional[datetime] = None


class AuthResponse(CamelModel):
    token: str
    user: UserResponse
    message: Optional[str] = None
