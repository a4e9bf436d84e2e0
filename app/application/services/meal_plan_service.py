from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from ...domain.errors import NotFoundError
from ...domain.models import MealPlan
from ...domain.models.meal_plan import DEFAULT_MEAL_PLANS
from ...domain.ports.persistence import MealPlanRepository
from ...domain.pricing import PLAN_PRICES

logger = logging.getLogger(__name__)


class MealPlanService:
    """Catalogue of meal plans shown on the menu page."""

    def __init__(self, repository: MealPlanRepository) -> None:
        self._repository = repository

    def list_meal_plans(
        self,
        *,
        plan_type: Optional[str] = None,
        active: Optional[bool] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        sort_by: str = "plan_type",
        descending: bool = False,
    ) -> List[MealPlan]:
        return self._repository.list_meal_plans(
            plan_type=plan_type,
            is_active=active,
            min_price=min_price,
            max_price=max_price,
            sort_by=sort_by,
            descending=descending,
        )

    def get_meal_plan(self, meal_plan_id: int) -> MealPlan:
        meal_plan = self._repository.get_meal_plan(meal_plan_id)
        if meal_plan is None:
            raise NotFoundError(f"No meal plan found with ID: {meal_plan_id}")
        return meal_plan

    def get_by_type(self, plan_type: str) -> List[MealPlan]:
        self._check_plan_type(plan_type)
        return self._repository.list_meal_plans(plan_type=plan_type, is_active=True)

    def create_meal_plan(self, data: Dict[str, Any]) -> MealPlan:
        self._check_plan_type(data["plan_type"])
        meal_plan = self._repository.save_meal_plan(MealPlan(id=None, **data))
        logger.info("Meal plan %s (%s) created", meal_plan.id, meal_plan.name)
        return meal_plan

    def update_meal_plan(self, meal_plan_id: int, data: Dict[str, Any]) -> MealPlan:
        self._check_plan_type(data["plan_type"])
        current = self.get_meal_plan(meal_plan_id)
        return self._repository.save_meal_plan(replace(current, **data))

    def set_active(self, meal_plan_id: int, is_active: bool) -> MealPlan:
        current = self.get_meal_plan(meal_plan_id)
        return self._repository.save_meal_plan(replace(current, is_active=is_active))

    def delete_meal_plan(self, meal_plan_id: int) -> MealPlan:
        current = self.get_meal_plan(meal_plan_id)
        self._repository.delete_meal_plan(meal_plan_id)
        logger.info("Meal plan %s deleted", meal_plan_id)
        return current

    def seed_defaults(self) -> List[MealPlan]:
        """Replace the catalogue with the three standard plans."""
        self._repository.clear_meal_plans()
        seeded = [
            self._repository.save_meal_plan(MealPlan(id=None, **dict(item)))
            for item in DEFAULT_MEAL_PLANS
        ]
        logger.info("Seeded %s default meal plans", len(seeded))
        return seeded

    @staticmethod
    def _check_plan_type(plan_type: str) -> None:
        if plan_type not in PLAN_PRICES:
            raise ValueError("Plan type must be diet, protein, or royal")
