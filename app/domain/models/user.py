"""User domain model for customer and administrator accounts."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass(slots=True)
class User:
    """
    User entity representing both customer and admin accounts.

    Attributes:
        id: Unique identifier
        full_name: Display name
        email: User email address (unique, lower-cased)
        password_hash: bcrypt hash
        role: ``user`` or ``admin``
        is_active: Deactivated accounts cannot authenticate
        last_login: Timestamp of the last successful login
        login_attempts: Consecutive failed logins
        lock_until: Logins are refused until this moment
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    id: int
    full_name: str
    email: str
    password_hash: str
    role: str
    is_active: bool
    last_login: Optional[datetime]
    login_attempts: int
    lock_until: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def is_locked(self, now: datetime) -> bool:
        return self.lock_until is not None and self.lock_until > now

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role} active={self.is_active}>"
