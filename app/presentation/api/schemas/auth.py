from __future__ import annotations

import re
from typing import Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from .base import CamelModel

_FULL_NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")


def _check_full_name(value: Optional[str]) -> Optional[str]:
    if value is not None and not _FULL_NAME_PATTERN.match(value):
        raise ValueError("Full name can only contain letters, spaces, hyphens, and apostrophes")
    return value


class RegisterRequest(CamelModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    confirm_password: str

    @field_validator("full_name")
    @classmethod
    def valid_full_name(cls, value: Optional[str]) -> Optional[str]:
        return _check_full_name(value)

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Password confirmation does not match password")
        return self


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class ProfileUpdateRequest(CamelModel):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None

    @field_validator("full_name")
    @classmethod
    def valid_full_name(cls, value: Optional[str]) -> Optional[str]:
        return _check_full_name(value)
