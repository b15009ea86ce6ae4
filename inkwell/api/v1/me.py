"""Endpoints scoped to the authenticated caller."""

from fastapi import APIRouter

from inkwell.api.deps import CurrentUserDep, DbSession
from inkwell.models import PostStatus
from inkwell.schemas.post import PostListResponse, PostOut
from inkwell.services import posts as post_service

router = APIRouter()


@router.get("/posts", response_model=PostListResponse)
def my_posts(
    current_user: CurrentUserDep,
    db: DbSession,
    status: PostStatus | None = None,
) -> PostListResponse:
    """The caller's own posts in every state, newest first."""
    posts = post_service.list_posts(db, status=status, author_id=current_user.id)
    return PostListResponse(data=[PostOut.model_validate(p) for p in posts], count=len(posts))
