"""Moderation services for the forum."""

import logging

from sqlalchemy.orm import Session

from school_forum.core.errors import PermissionDenied
from school_forum.core.permissions import can_moderate
from school_forum.models import Comment
from school_forum.schemas.principal import Principal
from school_forum.services.comment_service import get_comment_or_404
from school_forum.services.post_service import require_principal

logger = logging.getLogger(__name__)


class ModerationService:
    """Service handling comment visibility flags."""

    @staticmethod
    def set_hidden(
        db: Session,
        principal: Principal | None,
        comment_id: int,
        hidden: bool,
    ) -> Comment:
        """Hide or unhide a comment.

        Only the flag and the moderator reference change; body, votes and
        replies are untouched. Setting the current value again succeeds
        without modifying anything.

        Args:
            db: Database session
            principal: Acting moderator
            comment_id: ID of the comment to update
            hidden: Desired visibility flag

        Raises:
            AuthenticationRequired: If no principal is supplied.
            NotFoundError: If the comment does not exist.
            PermissionDenied: Unless teacher or admin.
        """
        moderator = require_principal(principal)
        comment = get_comment_or_404(db, comment_id)
        if not can_moderate(moderator):
            raise PermissionDenied("Only teachers and admins can moderate comments")

        if comment.hidden == hidden:
            return comment

        comment.hidden = hidden
        comment.hidden_by = moderator.id if hidden else None
        db.commit()
        db.refresh(comment)
        logger.info(
            "Comment %s %s by %s",
            comment_id,
            "hidden" if hidden else "unhidden",
            moderator.id,
        )
        return comment
