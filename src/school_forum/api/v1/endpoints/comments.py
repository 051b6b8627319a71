"""Comment-related endpoints for the forum API."""

from fastapi import APIRouter, status

from school_forum.api.v1.dependencies import PrincipalDep, SessionDep
from school_forum.schemas.comment import CommentResponse, CommentUpdate
from school_forum.services import comment_service
from school_forum.services.thread import project_comment

router = APIRouter(prefix="/comments", tags=["comments"])


@router.patch("/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: int,
    changes: CommentUpdate,
    db: SessionDep,
    principal: PrincipalDep,
) -> CommentResponse:
    """Replace the body of a comment."""
    comment = comment_service.edit_comment(db, principal, comment_id, body=changes.body)
    return CommentResponse.model_validate(project_comment(comment, principal))


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: int, db: SessionDep, principal: PrincipalDep) -> None:
    """Delete a comment and every reply beneath it."""
    comment_service.delete_comment(db, principal, comment_id)
