from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from apps.api.app.core.config import settings


def _check_password_length(value: str) -> str:
    if len(value) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(f"password is too short (minimum is {settings.PASSWORD_MIN_LENGTH} characters)")
    if len(value) > settings.PASSWORD_MAX_LENGTH:
        raise ValueError(f"password is too long (maximum is {settings.PASSWORD_MAX_LENGTH} characters)")
    return value


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    name: str

    @field_validator("name")
    @classmethod
    def name_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name can't be blank")
        return value.strip()

    @field_validator("password")
    @classmethod
    def password_length(cls, value: str) -> str:
        return _check_password_length(value)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_length(cls, value: str) -> str:
        return _check_password_length(value)


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    confirmed_at: Optional[datetime] = None
    locked: bool

    model_config = ConfigDict(from_attributes=True)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class ConfirmationRequest(BaseModel):
    token: str
