from __future__ import annotations

from typing import Literal, Optional

from pydantic import EmailStr, Field

from .base import CamelModel


class TestimonialPayload(CamelModel):
    name: str = Field(..., min_length=2, max_length=50)
    message: str = Field(..., min_length=10, max_length=500)
    rating: int = Field(..., ge=1, le=5)
    email: Optional[EmailStr] = None
    plan: Optional[Literal["diet", "protein", "royal"]] = None
    location: Optional[str] = Field(default=None, max_length=100)


class TestimonialAdminUpdate(TestimonialPayload):
    is_featured: bool = False
    admin_notes: Optional[str] = Field(default=None, max_length=500)
