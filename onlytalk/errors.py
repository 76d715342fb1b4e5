"""
onlytalk.errors — Domain Error Taxonomy
========================================

Services raise these; the API layer renders them as ``{"detail": ...}``
with :attr:`OnlyTalkError.status_code`.  Raising any of them inside a
service aborts the surrounding transaction, so no partial mutation is
ever committed.
"""

from __future__ import annotations


class OnlyTalkError(Exception):
    """Base class for all expected, user-facing failures."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OnlyTalkError):
    """Input has the wrong shape or is out of range."""

    default_message = "Invalid input"


class AuthenticationError(OnlyTalkError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    default_message = "Authentication required"


class PermissionDeniedError(OnlyTalkError):
    """The caller may not touch this resource."""

    status_code = 403
    default_message = "Permission denied"


class NotFoundError(OnlyTalkError):
    """A referenced user, post, comment or item does not exist."""

    status_code = 404
    default_message = "Not found"


class ConflictError(OnlyTalkError):
    """A uniqueness rule would be violated (username taken, badge owned)."""

    status_code = 409
    default_message = "Already exists"


class DuplicateCheckinError(OnlyTalkError):
    """The user has already checked in today."""

    default_message = "Already checked in today"


class SelfRewardError(OnlyTalkError):
    """Sender and recipient of a reward are the same user."""

    default_message = "You cannot reward yourself"


class SelfFollowError(OnlyTalkError):
    default_message = "You cannot follow yourself"


class InsufficientPointsError(OnlyTalkError):
    """A debit would take the balance below zero."""

    default_message = "Not enough points"

    def __init__(
        self,
        message: str | None = None,
        *,
        balance: int | None = None,
        required: int | None = None,
    ) -> None:
        super().__init__(message)
        self.balance = balance
        self.required = required


class StoreError(OnlyTalkError):
    """The underlying database read or write failed."""

    status_code = 500
    default_message = "Storage failure"
