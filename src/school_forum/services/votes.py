"""Upvote toggling for posts and comments."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from school_forum.core.errors import NotFoundError, ValidationError
from school_forum.models import Comment, Post
from school_forum.repositories.forum_repo import ForumRepository, VoteTarget
from school_forum.schemas.principal import Principal
from school_forum.services.post_service import require_principal

logger = logging.getLogger(__name__)


def toggle_upvote(
    db: Session,
    principal: Principal | None,
    kind: VoteTarget | str,
    target_id: int,
) -> Post | Comment:
    """Add the principal's upvote to a target, or withdraw it if present.

    Two consecutive calls by the same principal cancel out. The count is
    always recomputed from the set of voters inside the same transaction.

    Raises:
        AuthenticationRequired: If no principal is supplied.
        NotFoundError: If the post or comment does not exist.
    """
    voter = require_principal(principal)
    try:
        target_kind = VoteTarget(kind)
    except ValueError as exc:
        raise ValidationError(f"Cannot vote on {kind!r}") from exc
    repo = ForumRepository(db)
    target = repo.get_target(target_kind, target_id)
    if target is None:
        raise NotFoundError(f"{target_kind.value.capitalize()} not found")

    try:
        upvoted = repo.toggle_vote(target_kind, target_id, voter.id)
        db.commit()
    except IntegrityError:
        # A concurrent toggle by the same voter inserted first; flip again
        # against the committed state.
        db.rollback()
        logger.warning("Concurrent vote on %s %s by %s", target_kind, target_id, voter.id)
        try:
            upvoted = repo.toggle_vote(target_kind, target_id, voter.id)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Vote on %s %s by %s lost the race twice; returning current state",
                target_kind,
                target_id,
                voter.id,
            )
            db.refresh(target)
            return target

    db.refresh(target)
    db.expire(target, ["votes"])
    logger.info(
        "%s %s %s by %s",
        target_kind.value.capitalize(),
        target_id,
        "upvoted" if upvoted else "unvoted",
        voter.id,
    )
    return target
