"""Service-level helpers for the comment lifecycle, including cascading delete."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from school_forum.core import permissions
from school_forum.core.errors import ConsistencyError, NotFoundError, PermissionDenied
from school_forum.core.settings import settings
from school_forum.db.time import utcnow
from school_forum.models import Comment
from school_forum.repositories.forum_repo import ForumRepository
from school_forum.schemas.principal import Principal
from school_forum.services.post_service import clean_text, get_post_or_404, require_principal
from school_forum.services.thread import descendants_of

logger = logging.getLogger(__name__)


def get_comment_or_404(db: Session, comment_id: int) -> Comment:
    """Return the comment or raise `NotFoundError`."""
    comment = ForumRepository(db).get_comment(comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


def create_comment(
    db: Session,
    principal: Principal | None,
    *,
    post_id: int,
    body: str,
    parent_id: int | None = None,
) -> Comment:
    """Reply to a post, or to an existing comment on the same post.

    Raises:
        AuthenticationRequired: If no principal is supplied.
        ValidationError: If the body is empty.
        NotFoundError: If the post is missing, or `parent_id` is not a
            comment on that post.
    """
    author = require_principal(principal)
    text = clean_text(body, "body", settings.max_body_length)
    get_post_or_404(db, post_id)

    repo = ForumRepository(db)
    if parent_id is not None:
        parent = repo.get_comment(parent_id)
        # A parent on a different post counts as missing.
        if parent is None or parent.post_id != post_id:
            raise NotFoundError("Parent comment not found")

    comment = Comment(
        post_id=post_id,
        parent_id=parent_id,
        body=text,
        author_id=author.id,
        author_role=author.role.value,
        author_name=author.display_name,
        created_at=utcnow(),
        upvotes=0,
        hidden=False,
    )
    repo.add_comment(comment)
    db.commit()
    db.refresh(comment)
    logger.info("Comment %s added to post %s by %s", comment.id, post_id, author.id)
    return comment


def edit_comment(
    db: Session,
    principal: Principal | None,
    comment_id: int,
    *,
    body: str,
) -> Comment:
    """Replace the body of a comment.

    Raises:
        AuthenticationRequired: If no principal is supplied.
        NotFoundError: If the comment does not exist.
        PermissionDenied: Unless the principal is the author or an admin.
        ValidationError: If the new body is empty.
    """
    editor = require_principal(principal)
    comment = get_comment_or_404(db, comment_id)
    if not permissions.can_edit_comment(editor, comment):
        raise PermissionDenied("Only the author or an admin can edit this comment")

    comment.body = clean_text(body, "body", settings.max_body_length)
    comment.updated_at = utcnow()
    db.commit()
    db.refresh(comment)
    logger.info("Comment %s edited by %s", comment_id, editor.id)
    return comment


def delete_comment(db: Session, principal: Principal | None, comment_id: int) -> set[int]:
    """Delete a comment together with its entire reply subtree.

    The descendant set is snapshotted and deleted with the target. Since the
    set is recomputed from whatever remains, the loop is safe to re-run after
    a partial failure. A pass that collides with a reply written after the
    snapshot is rolled back and retried. It repeats until no comment on the
    post points at a deleted id.

    Returns:
        The ids of every comment removed, including `comment_id`.

    Raises:
        AuthenticationRequired: If no principal is supplied.
        NotFoundError: If the comment does not exist.
        PermissionDenied: Unless admin, teacher or the author.
        ConsistencyError: If the subtree or orphans remain after the configured passes.
    """
    actor = require_principal(principal)
    comment = get_comment_or_404(db, comment_id)
    if not permissions.can_delete_comment(actor, comment):
        raise PermissionDenied("You cannot delete this comment")

    post_id = comment.post_id
    deleted = _delete_subtree(db, post_id, comment_id)
    logger.info(
        "Comment %s deleted by %s with %d descendants",
        comment_id,
        actor.id,
        len(deleted) - 1,
    )
    return deleted


def _delete_subtree(db: Session, post_id: int, comment_id: int) -> set[int]:
    repo = ForumRepository(db)
    deleted: set[int] = set()
    for attempt in range(1, settings.cascade_delete_max_passes + 1):
        remaining = repo.list_comments(post_id)
        doomed = {comment_id} | {c.id for c in remaining if c.id in deleted}
        for root in set(doomed):
            doomed |= descendants_of(root, remaining)
        # Replies that arrived under already-deleted comments.
        doomed |= {c.id for c in repo.list_orphans(post_id)}
        if not doomed & {c.id for c in remaining}:
            break
        logger.debug("Cascade pass %d on post %s removing %s", attempt, post_id, sorted(doomed))
        try:
            repo.delete_comments(doomed)
            db.commit()
        except IntegrityError:
            # A reply landed under a doomed comment after the snapshot.
            db.rollback()
            logger.debug("Cascade pass %d on post %s hit a late reply", attempt, post_id)
            continue
        deleted |= doomed
    else:
        present = {c.id for c in repo.list_comments(post_id)}
        leftovers = sorted(({comment_id} | deleted) & present)
        leftovers += [c.id for c in repo.list_orphans(post_id)]
        if leftovers:
            logger.error("Cascade delete on post %s left comments %s", post_id, leftovers)
            raise ConsistencyError("Comment subtree could not be fully removed")
    return deleted | {comment_id}
