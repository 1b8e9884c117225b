"""
Error types raised by the review core

Each error carries the stable status code the API returns for it, so
handlers can turn any of them into a response without a lookup table.
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base class for expected, user-visible failures."""

    code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ReviewError):
    """Malformed or out-of-range input. Never retried."""

    code = 400


class BannedActorError(ReviewError):
    code = 507

    def __init__(self, message: str = "The user is banned"):
        super().__init__(message)


class NotFoundError(ReviewError):
    """Referenced book or review is absent (or soft-deleted, for interactions)."""

    code = 508


class SelfInteractionError(ReviewError):
    code = 509


class AlreadyActiveError(ReviewError):
    """A like/flag that is already active was requested again."""

    code = 510


class NotActiveError(ReviewError):
    """An unlike/unflag was requested without a prior like/flag."""

    code = 511


class ConflictError(ReviewError):
    """The review's current state does not allow the requested transition."""

    code = 409


class TransientConflictError(ReviewError):
    """Concurrent transactions kept colliding. Safe for the caller to retry."""

    code = 503

    def __init__(self, message: str = "Too much concurrent activity, please retry."):
        super().__init__(message)
