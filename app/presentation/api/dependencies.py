from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.user_service import UserService
from ...core.dependencies import get_user_service
from ...domain.access import require_role
from ...domain.models import User
from ...domain.models.user import ROLE_ADMIN

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Resolve the bearer access token to an active user."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authentication token provided",
        )
    user = user_service.user_from_token(credentials.credentials)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is invalid or expired",
        )
    if user.is_locked(datetime.now(timezone.utc)):
        raise HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail="Account is temporarily locked due to multiple failed login attempts",
        )
    return user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    user_service: UserService = Depends(get_user_service),
) -> Optional[User]:
    if credentials is None:
        return None
    return user_service.user_from_token(credentials.credentials)


def require_admin_user(user: User = Depends(get_current_user)) -> User:
    require_role(user.role, ROLE_ADMIN)
    return user
