"""Error taxonomy shared by the domain and application layers."""

from __future__ import annotations


class SubscriptionError(ValueError):
    """Rejected subscription operation. ``kind`` names the failure category."""

    kind = "SubscriptionError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidConfiguration(SubscriptionError):
    kind = "InvalidConfiguration"


class InvalidDateRange(SubscriptionError):
    kind = "InvalidDateRange"


class OverlappingPause(SubscriptionError):
    kind = "OverlappingPause"


class InvalidStateTransition(SubscriptionError):
    kind = "InvalidStateTransition"


class NotFoundError(LookupError):
    """Requested record does not exist."""


class PermissionDeniedError(PermissionError):
    """Actor is not allowed to touch the requested resource."""


class ConflictError(ValueError):
    """Write would violate a uniqueness constraint (e.g. duplicate e-mail)."""


class AccountLockedError(PermissionError):
    """Too many failed logins; the account is temporarily locked."""
