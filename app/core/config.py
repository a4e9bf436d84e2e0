import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.app_env = os.getenv("APP_ENV", "development").lower()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/app.db")).resolve()
        if self.is_production:
            self.jwt_secret = self._get("JWT_SECRET")
        else:
            self.jwt_secret = os.getenv("JWT_SECRET", "change-me")
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.jwt_issuer = os.getenv("JWT_ISSUER", "mealkit")
        self.jwt_audience = os.getenv("JWT_AUDIENCE", "mealkit-users")
        self.jwt_access_exp_minutes = self._get_int("JWT_ACCESS_EXP_MINUTES", default=60 * 24 * 7)
        self.jwt_refresh_exp_minutes = self._get_int("JWT_REFRESH_EXP_MINUTES", default=60 * 24 * 30)
        self.admin_default_email = os.getenv("ADMIN_EMAIL")
        self.admin_default_password = os.getenv("ADMIN_PASSWORD")
        self.admin_default_full_name = os.getenv("ADMIN_FULL_NAME", "Administrator")
        self.price_locale = os.getenv("PRICE_LOCALE", "id_ID")
        self.price_currency = os.getenv("PRICE_CURRENCY", "IDR")
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @staticmethod
    def _get(key: str) -> str:
        value = os.getenv(key)
        if not value:
            raise RuntimeError(f"Missing required environment variable: {key}")
        return value

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc
