"""Service-level helpers for the post lifecycle."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from school_forum.core import permissions
from school_forum.core.errors import (
    AuthenticationRequired,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from school_forum.core.settings import settings
from school_forum.db.time import utcnow
from school_forum.models import FORUM_TAGS, Post
from school_forum.repositories.forum_repo import ForumRepository
from school_forum.schemas.principal import Principal

logger = logging.getLogger(__name__)

EDITABLE_POST_FIELDS = frozenset({"title", "body", "tag", "class_id"})


def require_principal(principal: Principal | None) -> Principal:
    """Return the principal or raise if the caller is anonymous."""
    if principal is None:
        raise AuthenticationRequired("Authentication required")
    return principal


def clean_text(value: str | None, field_name: str, max_length: int) -> str:
    """Strip `value` and reject it if empty or too long."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} must not be empty")
    if len(text) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return text


def validate_tag(tag: str) -> str:
    """Reject tags outside the closed forum set."""
    if tag not in FORUM_TAGS:
        raise ValidationError(f"Unknown tag: {tag!r}")
    return tag


def get_post_or_404(db: Session, post_id: int) -> Post:
    """Return the post or raise `NotFoundError`."""
    post = ForumRepository(db).get_post(post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def create_post(
    db: Session,
    principal: Principal | None,
    *,
    title: str,
    body: str,
    tag: str = "general",
    class_id: str | None = None,
) -> Post:
    """Create a post authored by `principal`.

    Args:
        db: Database session.
        principal: The author; their role and display name are snapshotted.
        title: Non-empty title.
        body: Non-empty body.
        tag: One of the forum tags.
        class_id: Optional class the post is scoped to.

    Returns:
        The persisted post with no votes and not pinned.

    Raises:
        AuthenticationRequired: If no principal is supplied.
        ValidationError: If title or body is empty or the tag is unknown.
    """
    author = require_principal(principal)
    post = Post(
        title=clean_text(title, "title", settings.max_title_length),
        body=clean_text(body, "body", settings.max_body_length),
        tag=validate_tag(tag),
        author_id=author.id,
        author_role=author.role.value,
        author_name=author.display_name,
        created_at=utcnow(),
        is_pinned=False,
        upvotes=0,
        class_id=class_id,
    )
    ForumRepository(db).add_post(post)
    db.commit()
    db.refresh(post)
    logger.info("Post %s created by %s", post.id, author.id)
    return post


def edit_post(
    db: Session,
    principal: Principal | None,
    post_id: int,
    fields: Mapping[str, Any],
) -> Post:
    """Update the editable fields of a post.

    Only title, body, tag and class_id can change here; authorship,
    timestamps and votes are left alone. Unknown keys are rejected.

    Raises:
        AuthenticationRequired: If no principal is supplied.
        NotFoundError: If the post does not exist.
        PermissionDenied: Unless the principal is the author or an admin.
        ValidationError: If an edited value is invalid.
    """
    editor = require_principal(principal)
    post = get_post_or_404(db, post_id)
    if not permissions.can_edit_post(editor, post):
        raise PermissionDenied("Only the author or an admin can edit this post")

    unknown = set(fields) - EDITABLE_POST_FIELDS
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

    if "title" in fields:
        post.title = clean_text(fields["title"], "title", settings.max_title_length)
    if "body" in fields:
        post.body = clean_text(fields["body"], "body", settings.max_body_length)
    if "tag" in fields:
        post.tag = validate_tag(fields["tag"])
    if "class_id" in fields:
        post.class_id = fields["class_id"]
    post.updated_at = utcnow()

    db.commit()
    db.refresh(post)
    logger.info("Post %s edited by %s", post.id, editor.id)
    return post


def delete_post(db: Session, principal: Principal | None, post_id: int) -> None:
    """Delete a post and, transitively, all of its comments.

    Raises:
        AuthenticationRequired: If no principal is supplied.
        NotFoundError: If the post does not exist.
        PermissionDenied: Unless admin, teacher or the author.
    """
    actor = require_principal(principal)
    post = get_post_or_404(db, post_id)
    if not permissions.can_delete_post(actor, post):
        raise PermissionDenied("You cannot delete this post")

    removed = ForumRepository(db).delete_post(post_id)
    db.commit()
    logger.info("Post %s deleted by %s with %d comments", post_id, actor.id, removed)


def toggle_pin(db: Session, principal: Principal | None, post_id: int) -> Post:
    """Flip the pinned flag of a post.

    Raises:
        AuthenticationRequired: If no principal is supplied.
        NotFoundError: If the post does not exist.
        PermissionDenied: Unless teacher or admin.
    """
    actor = require_principal(principal)
    post = get_post_or_404(db, post_id)
    if not permissions.can_pin(actor):
        raise PermissionDenied("Only teachers and admins can pin posts")

    post.is_pinned = not post.is_pinned
    db.commit()
    db.refresh(post)
    logger.info("Post %s %s by %s", post_id, "pinned" if post.is_pinned else "unpinned", actor.id)
    return post
