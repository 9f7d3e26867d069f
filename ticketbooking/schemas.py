"""Request and response models exchanged with API clients."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

_MAX_EMAIL_LENGTH = 100
_NAME_PATTERN = re.compile(r"^[A-Za-z\s'-]+$")
_PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
_PASSWORD_SPECIALS = "@$!%*?&"
_PASSWORD_ALLOWED = re.compile(r"^[A-Za-z\d@$!%*?&]+$")


def _check_email_length(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value) > _MAX_EMAIL_LENGTH:
        raise ValueError(f"Email must be at most {_MAX_EMAIL_LENGTH} characters")
    return value


def _check_password(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if (
        not _PASSWORD_ALLOWED.fullmatch(value)
        or not any(char.islower() for char in value)
        or not any(char.isupper() for char in value)
        or not any(char.isdigit() for char in value)
        or not any(char in _PASSWORD_SPECIALS for char in value)
    ):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number and one special character"
        )
    return value


def _check_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    if len(stripped) < 2:
        raise ValueError("Name must be between 2 and 50 characters")
    if not _NAME_PATTERN.fullmatch(stripped):
        raise ValueError("Name can only contain letters, spaces, hyphens, and apostrophes")
    return stripped


def _check_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    if not _PHONE_PATTERN.fullmatch(stripped):
        raise ValueError("Phone number must be valid international format")
    return stripped


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=50)
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    phone_number: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        return _check_email_length(value)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: str) -> str:
        return _check_password(value)

    @field_validator("first_name", "last_name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator("phone_number")
    @classmethod
    def _validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)


class UpdateUserRequest(BaseModel):
    """Partial update: fields left as ``None`` keep their stored value."""

    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=50)
    first_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    phone_number: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: Optional[str]) -> Optional[str]:
        return _check_email_length(value)

    @field_validator("password")
    @classmethod
    def _validate_password(cls, value: Optional[str]) -> Optional[str]:
        return _check_password(value)

    @field_validator("first_name", "last_name")
    @classmethod
    def _validate_name(cls, value: Optional[str]) -> Optional[str]:
        return _check_name(value)

    @field_validator("phone_number")
    @classmethod
    def _validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)

    def updated_fields(self) -> List[str]:
        return [name for name, value in self.model_dump().items() if value is not None]

    def has_updates(self) -> bool:
        return bool(self.updated_fields())


class UserResponse(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    full_name: Optional[str] = None
    status: str


class ErrorResponse(BaseModel):
    code: str
    message: str
    status: int
    path: str = "unknown"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    details: Optional[Dict[str, str]] = None
    trace_id: Optional[str] = None


__all__ = ["CreateUserRequest", "ErrorResponse", "UpdateUserRequest", "UserResponse"]
