from __future__ import annotations

from typing import List

from pydantic import Field

from .base import CamelModel


class NutritionInfo(CamelModel):
    calories: str = Field(..., min_length=1)
    protein: str = Field(..., min_length=1)
    carbs: str = Field(..., min_length=1)
    fats: str = Field(..., min_length=1)


class MealPlanPayload(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    price: int = Field(..., ge=0)
    plan_type: str
    description: str = Field(..., min_length=10, max_length=500)
    detailed_description: str = Field(..., min_length=20, max_length=2000)
    features: List[str] = Field(..., min_length=1)
    nutrition_info: NutritionInfo
    sample_meals: List[str] = Field(default_factory=list)
    dietary_info: List[str] = Field(default_factory=list)
    image: str = "/api/placeholder/400/300"
    is_active: bool = True


class MealPlanStatusRequest(CamelModel):
    is_active: bool
