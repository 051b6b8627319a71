"""Post-related endpoints for the forum API."""

from fastapi import APIRouter, Query, status
from sqlalchemy.orm import Session

from school_forum.api.v1.dependencies import PrincipalDep, SessionDep
from school_forum.models import Post
from school_forum.repositories.forum_repo import ForumRepository
from school_forum.schemas.comment import (
    CommentCreate,
    CommentResponse,
    ThreadNodeResponse,
    ThreadResponse,
)
from school_forum.schemas.post import PostCreate, PostResponse, PostUpdate
from school_forum.schemas.principal import Principal
from school_forum.services import comment_service, post_service, ranking
from school_forum.services.thread import CommentView, ThreadNode, get_thread, project_comment

router = APIRouter(prefix="/posts", tags=["posts"])


def to_post_response(post: Post, viewer: Principal | None, comment_count: int) -> PostResponse:
    """Convert a Post ORM instance to an API schema for `viewer`."""
    response = PostResponse.model_validate(post)
    response.comment_count = comment_count
    response.has_upvoted = viewer is not None and viewer.id in post.upvoted_by
    return response


def _single_post_response(db: Session, post: Post, viewer: Principal | None) -> PostResponse:
    count = ForumRepository(db).count_comments([post.id])[post.id]
    return to_post_response(post, viewer, count)


def _to_node_response(node: ThreadNode[CommentView]) -> ThreadNodeResponse:
    response = ThreadNodeResponse.model_validate(node.comment)
    response.depth = node.depth
    response.replies = [_to_node_response(child) for child in node.children]
    return response


@router.get("/", response_model=list[PostResponse])
async def list_posts(
    db: SessionDep,
    viewer: PrincipalDep,
    tag: str = Query("all", description="Tag to filter by, or 'all'"),
    sort: str = Query("hot", description="One of hot, new, top"),
    q: str = Query("", description="Case-insensitive text search over title and body"),
    class_id: str | None = Query(None, description="Also show posts scoped to this class"),
) -> list[PostResponse]:
    """List posts with pinned posts first, then in the requested order."""
    posts = ranking.list_posts(
        db,
        tag_filter=tag,
        sort=sort,
        text_query=q,
        class_id=class_id,
    )
    counts = ForumRepository(db).count_comments(post.id for post in posts)
    return [to_post_response(post, viewer, counts[post.id]) for post in posts]


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: SessionDep, viewer: PrincipalDep) -> PostResponse:
    """Get a specific post by ID."""
    post = post_service.get_post_or_404(db, post_id)
    return _single_post_response(db, post, viewer)


@router.get("/{post_id}/thread", response_model=ThreadResponse)
async def get_post_thread(post_id: int, db: SessionDep, viewer: PrincipalDep) -> ThreadResponse:
    """Return the comment tree of a post with the viewer's visibility applied."""
    tree = get_thread(db, post_id, viewer)
    return ThreadResponse(
        post_id=post_id,
        comment_count=len(tree),
        comments=[_to_node_response(root) for root in tree.roots],
    )


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    db: SessionDep,
    principal: PrincipalDep,
) -> PostResponse:
    """Create a new post authored by the caller."""
    post = post_service.create_post(
        db,
        principal,
        title=post_data.title,
        body=post_data.body,
        tag=post_data.tag,
        class_id=post_data.class_id,
    )
    return to_post_response(post, principal, 0)


@router.patch("/{post_id}", response_model=PostResponse)
async def edit_post(
    post_id: int,
    changes: PostUpdate,
    db: SessionDep,
    principal: PrincipalDep,
) -> PostResponse:
    """Edit the title, body, tag or class of a post."""
    post = post_service.edit_post(db, principal, post_id, changes.model_dump(exclude_unset=True))
    return _single_post_response(db, post, principal)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: int, db: SessionDep, principal: PrincipalDep) -> None:
    """Delete a post and all of its comments."""
    post_service.delete_post(db, principal, post_id)


@router.post("/{post_id}/pin", response_model=PostResponse)
async def toggle_pin(post_id: int, db: SessionDep, principal: PrincipalDep) -> PostResponse:
    """Pin or unpin a post."""
    post = post_service.toggle_pin(db, principal, post_id)
    return _single_post_response(db, post, principal)


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    db: SessionDep,
    principal: PrincipalDep,
) -> CommentResponse:
    """Reply to a post, or to a comment on it when `parent_id` is given."""
    comment = comment_service.create_comment(
        db,
        principal,
        post_id=post_id,
        parent_id=comment_data.parent_id,
        body=comment_data.body,
    )
    return CommentResponse.model_validate(project_comment(comment, principal))
