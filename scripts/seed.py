import getpass

from dotenv import load_dotenv

from app.application.services.meal_plan_service import MealPlanService
from app.application.services.testimonial_service import TestimonialService
from app.application.services.user_service import UserService
from app.core.config import Settings
from app.core.logging import configure_logging
from app.infrastructure.persistence.sqlite import SQLitePersistence


def main() -> None:
    load_dotenv()
    configure_logging()
    settings = Settings()

    if settings.is_production:
        raise RuntimeError("Refusing to seed a production database. Unset APP_ENV=production to continue.")

    persistence = SQLitePersistence(settings.database_path)
    try:
        users = UserService(
            persistence,
            jwt_secret=settings.jwt_secret,
            jwt_algorithm=settings.jwt_algorithm,
            jwt_issuer=settings.jwt_issuer,
            jwt_audience=settings.jwt_audience,
        )
        email = settings.admin_default_email or input("Admin e-mail: ").strip()
        password = settings.admin_default_password or getpass.getpass("Admin password: ").strip()
        admin = users.ensure_default_admin(email, password, settings.admin_default_full_name)
        if admin:
            print("Admin account ready:", admin.email)

        plans = MealPlanService(persistence).seed_defaults()
        print(f"Seeded {len(plans)} meal plans into {settings.database_path}")
        testimonials = TestimonialService(persistence).seed_defaults()
        print(f"Seeded {len(testimonials)} approved testimonials")
    finally:
        persistence.close()


if __name__ == "__main__":
    main()
