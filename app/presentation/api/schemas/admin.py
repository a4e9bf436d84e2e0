from __future__ import annotations

from typing import Literal

from pydantic import EmailStr, Field

from .base import CamelModel


class AdminUserCreateRequest(CamelModel):
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Literal["user", "admin"] = "user"


class UserStatusRequest(CamelModel):
    is_active: bool


class UserRoleRequest(CamelModel):
    role: Literal["user", "admin"]
