"""Service for user authentication and account management."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from email_validator import EmailNotValidError, validate_email

from ...domain.errors import AccountLockedError, ConflictError, NotFoundError
from ...domain.models.user import ROLE_USER, ROLES, User
from ...domain.ports.persistence import UserRepository

logger = logging.getLogger(__name__)

_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


class UserService:
    """Service for managing user registration, login and JWT tokens."""

    MAX_LOGIN_ATTEMPTS = 5
    LOCK_DURATION = timedelta(hours=2)

    def __init__(
        self,
        user_repository: UserRepository,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        jwt_issuer: str = "mealkit",
        jwt_audience: str = "mealkit-users",
        access_exp_minutes: int = 60 * 24 * 7,
        refresh_exp_minutes: int = 60 * 24 * 30,
    ) -> None:
        if not jwt_secret:
            raise RuntimeError("JWT_SECRET is not configured.")
        if jwt_secret == "change-me":
            logger.warning("JWT_SECRET is using the default value. Configure a strong secret in production.")
        self.user_repository = user_repository
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.jwt_issuer = jwt_issuer
        self.jwt_audience = jwt_audience
        self.access_exp_minutes = access_exp_minutes
        self.refresh_exp_minutes = refresh_exp_minutes

    # ------------------------------------------------------------------
    def register(self, full_name: str, email: str, password: str, role: str = ROLE_USER) -> User:
        """
        Register a new account.

        Raises:
            ValueError: If the password is too weak or the role unknown
            ConflictError: If the email is already registered
        """
        self.validate_password(password)
        if role not in ROLES:
            raise ValueError("Role must be either user or admin")
        email_clean = email.strip().lower()
        if self.user_repository.get_user_by_email(email_clean):
            raise ConflictError("An account with this email address already exists")
        user = self.user_repository.create_user(
            full_name=full_name.strip(),
            email=email_clean,
            password_hash=self.hash_password(password),
            role=role,
        )
        logger.info("Registered %s account %s", role, user.email)
        return user

    def ensure_default_admin(
        self,
        email: Optional[str],
        password: Optional[str],
        full_name: str = "Administrator",
    ) -> Optional[User]:
        """Create the configured admin once; an address login would reject raises ValueError."""
        if not email or not password:
            return None
        try:
            email = validate_email(email.strip(), check_deliverability=False).normalized.lower()
        except EmailNotValidError as exc:
            raise ValueError(f"ADMIN_EMAIL is not a usable login address: {exc}") from exc
        existing = self.user_repository.get_user_by_email(email)
        if existing:
            return existing
        logger.info("Creating default administrator account for %s", email)
        return self.user_repository.create_user(
            full_name=full_name,
            email=email,
            password_hash=self.hash_password(password),
            role="admin",
        )

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """
        Check credentials, tracking failed attempts.

        Returns:
            User if authenticated, None otherwise

        Raises:
            AccountLockedError: If the account is temporarily locked
        """
        now = self._now()
        user = self.user_repository.get_user_by_email(email.strip().lower())
        if not user or not user.is_active:
            return None
        if user.is_locked(now):
            raise AccountLockedError(
                "Account is temporarily locked due to multiple failed login attempts. Please try again later."
            )

        if not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            self._register_failed_login(user, now)
            return None

        return self.user_repository.update_user(
            user.id,
            login_attempts=0,
            lock_until=None,
            last_login=now,
        )

    def _register_failed_login(self, user: User, now: datetime) -> None:
        if user.lock_until is not None and user.lock_until <= now:
            self.user_repository.update_user(user.id, login_attempts=1, lock_until=None)
            return
        attempts = user.login_attempts + 1
        updates: Dict[str, Any] = {"login_attempts": attempts}
        if attempts >= self.MAX_LOGIN_ATTEMPTS:
            updates["lock_until"] = now + self.LOCK_DURATION
            logger.warning("Locking account %s after %s failed logins", user.email, attempts)
        self.user_repository.update_user(user.id, **updates)

    def update_profile(
        self,
        user_id: int,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> User:
        updates: Dict[str, Any] = {}
        if full_name:
            updates["full_name"] = full_name.strip()
        if email:
            email_clean = email.strip().lower()
            existing = self.user_repository.get_user_by_email(email_clean)
            if existing and existing.id != user_id:
                raise ConflictError("This email address is already in use")
            updates["email"] = email_clean
        if not updates:
            return self.get_by_id(user_id)
        return self.user_repository.update_user(user_id, **updates)

    # Tokens ------------------------------------------------------------
    def create_tokens(self, user: User) -> Dict[str, Any]:
        now = self._now()
        access_payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "full_name": user.full_name,
            "type": TOKEN_TYPE_ACCESS,
            "iss": self.jwt_issuer,
            "aud": self.jwt_audience,
            "iat": now,
            "exp": now + timedelta(minutes=self.access_exp_minutes),
        }
        refresh_payload = {
            "sub": str(user.id),
            "type": TOKEN_TYPE_REFRESH,
            "iss": self.jwt_issuer,
            "aud": self.jwt_audience,
            "iat": now,
            "exp": now + timedelta(minutes=self.refresh_exp_minutes),
        }
        return {
            "access_token": jwt.encode(access_payload, self.jwt_secret, algorithm=self.jwt_algorithm),
            "refresh_token": jwt.encode(refresh_payload, self.jwt_secret, algorithm=self.jwt_algorithm),
            "expires_in": self.access_exp_minutes * 60,
        }

    def verify_token(self, token: str, token_type: str = TOKEN_TYPE_ACCESS) -> Optional[dict]:
        """
        Verify and decode a JWT token.

        Returns:
            Decoded payload if valid and of the expected type, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.jwt_algorithm],
                audience=self.jwt_audience,
                issuer=self.jwt_issuer,
            )
        except jwt.ExpiredSignatureError:
            return None
        except jwt.InvalidTokenError:
            return None
        if payload.get("type") != token_type:
            return None
        return payload

    def user_from_token(self, token: str, token_type: str = TOKEN_TYPE_ACCESS) -> Optional[User]:
        payload = self.verify_token(token, token_type)
        if not payload:
            return None
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None
        user = self.user_repository.get_user_by_id(user_id)
        if not user or not user.is_active:
            return None
        return user

    def refresh(self, refresh_token: str) -> Optional[Dict[str, Any]]:
        user = self.user_from_token(refresh_token, TOKEN_TYPE_REFRESH)
        if not user:
            return None
        return self.create_tokens(user)

    # Helpers -------------------------------------------------------------
    def get_by_id(self, user_id: int) -> User:
        user = self.user_repository.get_user_by_id(user_id)
        if not user:
            raise NotFoundError(f"No user found with ID: {user_id}")
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        return self.user_repository.get_user_by_email(email.lower())

    @staticmethod
    def validate_password(password: str) -> None:
        if not password or len(password) < 8:
            raise ValueError("Password must be at least 8 characters long")
        if not _PASSWORD_PATTERN.match(password):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, "
                "one number, and one special character"
            )

    @staticmethod
    def hash_password(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)
