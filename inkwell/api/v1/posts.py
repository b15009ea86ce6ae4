"""Post endpoints: CRUD, publication transitions and the auto-publish trigger."""

import json
import logging
from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from inkwell.api.deps import CurrentUserDep, DbSession, require_roles
from inkwell.core.config import settings
from inkwell.core.errors import ValidationFailed
from inkwell.core.roles import ADMIN_ROLES
from inkwell.models import PostStatus
from inkwell.schemas.auth import CurrentUser
from inkwell.schemas.common import ApiResponse
from inkwell.schemas.post import (
    AutoPublishResult,
    PostCreate,
    PostDetail,
    PostListResponse,
    PostOut,
    PostUpdate,
    ScheduleRequest,
)
from inkwell.services import posts as post_service
from inkwell.services.image_storage import upload_image_or_none
from inkwell.services.publication import (
    auto_publish_due_posts,
    duplicate_post,
    publish_post,
    schedule_post,
    unpublish_post,
)

logger = logging.getLogger(__name__)

router = APIRouter()

PayloadT = TypeVar("PayloadT", bound=BaseModel)

IMAGE_FIELD = "previewImage"
FORM_CONTENT_TYPES = frozenset({"multipart/form-data", "application/x-www-form-urlencoded"})


def _is_upload_file(obj: object) -> bool:
    """True if obj is an uploaded file (UploadFile or file-like with filename and read)."""
    if isinstance(obj, UploadFile):
        return True
    return (
        hasattr(obj, "read")
        and callable(getattr(obj, "read", None))
        and hasattr(obj, "filename")
    )


async def _get_post_payload(
    request: Request, model: type[PayloadT]
) -> tuple[PayloadT, UploadFile | None]:
    """
    Read a post payload from a JSON body or a form, plus the optional preview image.

    Form fields use the same camelCase names as JSON; tags may be repeated, a JSON
    array string, or a comma-separated string.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    image = None
    if content_type == "application/json":
        try:
            body = await request.json()
        except json.JSONDecodeError as e:
            raise ValidationFailed(f"Invalid JSON: {e!s}") from e
        if not isinstance(body, dict):
            raise ValidationFailed("Request body must be a JSON object")
    elif content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        candidate = form.get(IMAGE_FIELD)
        if candidate is not None and _is_upload_file(candidate):
            image = candidate
        body = {}
        for key in form.keys():
            if key == IMAGE_FIELD:
                continue
            values = [v for v in form.getlist(key) if not _is_upload_file(v)]
            if not values:
                continue
            body[key] = values if key == "tags" and len(values) > 1 else values[0]
    else:
        raise ValidationFailed(
            "Content-Type must be application/json or multipart/form-data"
        )
    try:
        return model.model_validate(body), image
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


async def _upload_preview(image: UploadFile | None) -> str | None:
    if image is None:
        return None
    data = await image.read()
    if not data:
        return None
    return await upload_image_or_none(data, image.filename or "", image.content_type, settings)


@router.post("", response_model=ApiResponse[PostOut], status_code=status.HTTP_201_CREATED)
async def create_post(
    request: Request,
    current_user: CurrentUserDep,
    db: DbSession,
) -> ApiResponse[PostOut]:
    """
    Create a post owned by the caller.

    - **JSON body**: `Content-Type: application/json` with the post fields.
    - **Form**: `multipart/form-data` with the same fields plus an optional
      `previewImage` file (jpg, jpeg, png or webp, at most 2 MB).

    A future `publishDate` schedules the post; `status=PUBLISHED` publishes it now.
    If the image store is unavailable the post is still created, without an image.
    """
    body, image = await _get_post_payload(request, PostCreate)
    image_url = await _upload_preview(image)
    post = post_service.create_post(db, current_user, body, image_url)
    return ApiResponse(message="Post created successfully", data=PostOut.model_validate(post))


@router.get("", response_model=PostListResponse)
def list_posts(
    db: DbSession,
    status: PostStatus | None = None,
    topic: str | None = None,
    tag: str | None = None,
    author: int | None = None,
    limit: int | None = Query(None, ge=1, le=post_service.MAX_PAGE_SIZE),
    offset: int | None = Query(None, ge=0),
) -> PostListResponse:
    """List posts newest first; due scheduled posts are published before the read."""
    posts = post_service.list_posts(
        db,
        status=status,
        topic=topic,
        tag=tag,
        author_id=author,
        limit=limit,
        offset=offset,
    )
    return PostListResponse(data=[PostOut.model_validate(p) for p in posts], count=len(posts))


@router.get("/scheduled", response_model=PostListResponse)
def list_scheduled(current_user: CurrentUserDep, db: DbSession) -> PostListResponse:
    posts = post_service.list_scheduled_posts(db, current_user)
    return PostListResponse(data=[PostOut.model_validate(p) for p in posts], count=len(posts))


@router.post("/auto-publish", response_model=ApiResponse[AutoPublishResult])
def trigger_auto_publish(
    _admin: Annotated[CurrentUser, Depends(require_roles(*ADMIN_ROLES))],
    db: DbSession,
) -> ApiResponse[AutoPublishResult]:
    """Run the auto-publish sweep on demand (admins only)."""
    published = auto_publish_due_posts(db)
    return ApiResponse(
        message=f"Published {published} scheduled post(s)",
        data=AutoPublishResult(published=published),
    )


@router.get("/{slug}", response_model=ApiResponse[PostDetail])
def get_post(slug: str, db: DbSession) -> ApiResponse[PostDetail]:
    """Post by slug with previous/next navigation within its topic; counts the read."""
    post, navigation = post_service.get_post_detail(db, slug)
    detail = PostDetail.model_validate(
        {**PostOut.model_validate(post).model_dump(), "navigation": navigation}
    )
    return ApiResponse(data=detail)


@router.put("/{post_id}", response_model=ApiResponse[PostOut])
async def update_post(
    post_id: int,
    request: Request,
    current_user: CurrentUserDep,
    db: DbSession,
) -> ApiResponse[PostOut]:
    """Partially update the caller's post; accepts the same payload shapes as create."""
    post = post_service.get_owned_post(db, post_id, current_user)
    body, image = await _get_post_payload(request, PostUpdate)
    image_url = await _upload_preview(image)
    post = post_service.update_post(db, post, body, image_url)
    return ApiResponse(message="Post updated successfully", data=PostOut.model_validate(post))


@router.delete("/{post_id}", response_model=ApiResponse[None])
def delete_post(post_id: int, current_user: CurrentUserDep, db: DbSession) -> ApiResponse[None]:
    post = post_service.get_owned_post(db, post_id, current_user)
    post_service.delete_post(db, post)
    return ApiResponse(message="Post deleted successfully")


@router.patch("/{post_id}/publish", response_model=ApiResponse[PostOut])
def publish(post_id: int, current_user: CurrentUserDep, db: DbSession) -> ApiResponse[PostOut]:
    post = post_service.get_owned_post(db, post_id, current_user)
    publish_post(post)
    db.commit()
    post = post_service.get_post_or_404(db, post_id)
    return ApiResponse(message="Post published successfully", data=PostOut.model_validate(post))


@router.patch("/{post_id}/unpublish", response_model=ApiResponse[PostOut])
def unpublish(post_id: int, current_user: CurrentUserDep, db: DbSession) -> ApiResponse[PostOut]:
    post = post_service.get_owned_post(db, post_id, current_user)
    unpublish_post(post)
    db.commit()
    post = post_service.get_post_or_404(db, post_id)
    return ApiResponse(message="Post unpublished successfully", data=PostOut.model_validate(post))


@router.patch("/{post_id}/schedule", response_model=ApiResponse[PostOut])
def schedule(
    post_id: int,
    body: ScheduleRequest,
    current_user: CurrentUserDep,
    db: DbSession,
) -> ApiResponse[PostOut]:
    """Schedule the caller's post for a strictly future publishDate."""
    post = post_service.get_owned_post(db, post_id, current_user)
    schedule_post(post, body.publish_date)
    db.commit()
    post = post_service.get_post_or_404(db, post_id)
    return ApiResponse(message="Post scheduled successfully", data=PostOut.model_validate(post))


@router.post(
    "/{post_id}/duplicate",
    response_model=ApiResponse[PostOut],
    status_code=status.HTTP_201_CREATED,
)
def duplicate(post_id: int, current_user: CurrentUserDep, db: DbSession) -> ApiResponse[PostOut]:
    post = post_service.get_owned_post(db, post_id, current_user)
    copy = duplicate_post(db, post)
    db.commit()
    copy = post_service.get_post_or_404(db, copy.id)
    logger.info("Duplicated post id=%s as id=%s", post_id, copy.id)
    return ApiResponse(message="Post duplicated successfully", data=PostOut.model_validate(copy))
