from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import CamelModel

PHONE_PATTERN = r"^(\+62|62|0)[0-9]{9,13}$"


class SubscriptionPayload(CamelModel):
    """Plan selection submitted when creating or editing a subscription.

    Plan, meal type and delivery day values are checked by the lifecycle
    rules so that bad selections surface as ``InvalidConfiguration``.
    """

    name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    plan: str
    meal_types: List[str] = Field(default_factory=list)
    delivery_days: List[str] = Field(default_factory=list)
    allergies: str = Field(default="", max_length=500)


class PauseRequest(CamelModel):
    start_date: datetime
    end_date: datetime
    reason: Optional[str] = Field(default=None, max_length=500)


class CancelRequest(CamelModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class StatusUpdateRequest(CamelModel):
    status: str
    reason: Optional[str] = Field(default=None, max_length=500)
