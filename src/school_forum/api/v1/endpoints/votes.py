"""Vote-related endpoints for the forum API."""

from fastapi import APIRouter

from school_forum.api.v1.dependencies import PrincipalDep, SessionDep
from school_forum.repositories.forum_repo import ForumRepository, VoteTarget
from school_forum.schemas.comment import CommentResponse
from school_forum.schemas.post import PostResponse
from school_forum.services.thread import project_comment
from school_forum.services.votes import toggle_upvote

from .posts import to_post_response

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/posts/{post_id}", response_model=PostResponse)
async def toggle_post_upvote(post_id: int, db: SessionDep, principal: PrincipalDep) -> PostResponse:
    """Add or withdraw the caller's upvote on a post."""
    post = toggle_upvote(db, principal, VoteTarget.POST, post_id)
    count = ForumRepository(db).count_comments([post_id])[post_id]
    return to_post_response(post, principal, count)


@router.post("/comments/{comment_id}", response_model=CommentResponse)
async def toggle_comment_upvote(
    comment_id: int,
    db: SessionDep,
    principal: PrincipalDep,
) -> CommentResponse:
    """Add or withdraw the caller's upvote on a comment."""
    comment = toggle_upvote(db, principal, VoteTarget.COMMENT, comment_id)
    return CommentResponse.model_validate(project_comment(comment, principal))
