"""Capability predicates for forum operations.

Every check is a pure function of the principal and, where ownership matters,
the resource being acted on. Services call these before touching storage, and
the HTTP layer can call them to decide which actions to offer a viewer.
"""

from __future__ import annotations

from typing import Protocol

from school_forum.schemas.principal import Principal, Role

MODERATOR_ROLES = frozenset({Role.TEACHER, Role.ADMIN})


class Authored(Protocol):
    """Anything that records the id of the principal who created it."""

    author_id: str


def is_moderator(principal: Principal | None) -> bool:
    """Return True for teachers and admins."""
    return principal is not None and principal.role in MODERATOR_ROLES


def is_author(principal: Principal | None, resource: Authored) -> bool:
    """Return True if the principal created the resource."""
    return principal is not None and principal.id == resource.author_id


def can_edit_post(principal: Principal | None, post: Authored) -> bool:
    """Only the author or an admin may edit a post."""
    if principal is None:
        return False
    return principal.role == Role.ADMIN or is_author(principal, post)


def can_delete_post(principal: Principal | None, post: Authored) -> bool:
    """Admins, teachers and the author may delete a post."""
    return is_moderator(principal) or is_author(principal, post)


def can_pin(principal: Principal | None) -> bool:
    """Pinning is reserved for teachers and admins."""
    return is_moderator(principal)


def can_edit_comment(principal: Principal | None, comment: Authored) -> bool:
    """Only the author or an admin may edit a comment."""
    if principal is None:
        return False
    return principal.role == Role.ADMIN or is_author(principal, comment)


def can_delete_comment(principal: Principal | None, comment: Authored) -> bool:
    """Admins, teachers and the author may delete a comment."""
    return is_moderator(principal) or is_author(principal, comment)


def can_moderate(principal: Principal | None) -> bool:
    """Hiding and unhiding comments is reserved for teachers and admins."""
    return is_moderator(principal)
