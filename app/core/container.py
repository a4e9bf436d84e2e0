from dataclasses import dataclass

from ..application.services.admin_service import AdminService
from ..application.services.meal_plan_service import MealPlanService
from ..application.services.subscription_service import SubscriptionService
from ..application.services.testimonial_service import TestimonialService
from ..application.services.user_service import UserService
from ..domain.ports.persistence import PersistenceGateway
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    user_service: UserService
    subscription_service: SubscriptionService
    meal_plan_service: MealPlanService
    testimonial_service: TestimonialService
    admin_service: AdminService
