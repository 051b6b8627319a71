"""Error taxonomy raised by the forum services.

The HTTP layer maps each kind to a distinct status code; callers embedding the
services directly can catch `ForumError` to handle all of them at once.
"""

from __future__ import annotations


class ForumError(Exception):
    """Base exception for all forum engine failures."""

    kind = "forum_error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(ForumError):
    """Raised for malformed input such as an empty title or unknown tag."""

    kind = "validation_error"


class NotFoundError(ForumError):
    """Raised when a post, comment or parent reference does not resolve."""

    kind = "not_found"


class PermissionDenied(ForumError):
    """Raised when the principal's role or ownership does not allow the action."""

    kind = "permission_denied"


class AuthenticationRequired(ForumError):
    """Raised when an operation needs a principal and none was supplied."""

    kind = "authentication_required"


class ConsistencyError(ForumError):
    """Raised when a cascading delete cannot converge to an orphan-free state."""

    kind = "consistency_error"


__all__ = [
    "AuthenticationRequired",
    "ConsistencyError",
    "ForumError",
    "NotFoundError",
    "PermissionDenied",
    "ValidationError",
]
