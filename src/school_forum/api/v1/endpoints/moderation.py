"""Moderation-related endpoints for the forum API."""

from __future__ import annotations

from fastapi import APIRouter

from school_forum.api.v1.dependencies import PrincipalDep, SessionDep
from school_forum.schemas.comment import CommentResponse, HiddenUpdate
from school_forum.services.moderation import ModerationService
from school_forum.services.thread import project_comment

router = APIRouter(prefix="/comments", tags=["moderation"])
moderation_service = ModerationService()


@router.put("/{comment_id}/hidden", response_model=CommentResponse)
async def set_comment_hidden(
    comment_id: int,
    update: HiddenUpdate,
    db: SessionDep,
    principal: PrincipalDep,
) -> CommentResponse:
    """Hide or unhide a comment (teachers and admins only)."""
    comment = moderation_service.set_hidden(db, principal, comment_id, update.hidden)
    return CommentResponse.model_validate(project_comment(comment, principal))
