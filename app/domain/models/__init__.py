"""Domain models for the meal-kit subscription service."""

from .meal_plan import MealPlan
from .subscription import PausePeriod, Subscription
from .testimonial import Testimonial
from .user import User

__all__ = [
    "MealPlan",
    "PausePeriod",
    "Subscription",
    "Testimonial",
    "User",
]
