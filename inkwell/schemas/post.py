"""Request/response schemas for posts and the publication endpoints."""

import json
from datetime import datetime
from typing import Any

from pydantic import Field, ValidationInfo, field_validator

from inkwell.core.timeutil import ensure_utc
from inkwell.models.post import ContentType, PostStatus
from inkwell.schemas.common import ApiResponse, CamelModel

MAX_TAGS_PER_POST = 20


def _parse_tags(value: Any) -> Any:
    """Accept a list, a JSON array string, or a comma-separated string (form uploads)."""
    if value is None or isinstance(value, list):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError("tags must be a JSON array or a comma-separated list") from e
        return [part for part in text.split(",")]
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class _PostFields(CamelModel):
    @field_validator(
        "slug",
        "html_content",
        "excerpt",
        "status",
        "publish_date",
        "topic_id",
        "content_type",
        "order",
        mode="before",
        check_fields=False,
    )
    @classmethod
    def blank_strings_are_none(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("tags", mode="before", check_fields=False)
    @classmethod
    def parse_tags(cls, v: Any) -> Any:
        return _parse_tags(v)

    @field_validator("tags", check_fields=False)
    @classmethod
    def limit_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is not None and len(v) > MAX_TAGS_PER_POST:
            raise ValueError(f"At most {MAX_TAGS_PER_POST} tags are allowed per post")
        return v

    @field_validator("publish_date", check_fields=False)
    @classmethod
    def publish_date_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None


class PostCreate(_PostFields):
    """Fields accepted when creating a post (JSON body or multipart form)."""

    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    slug: str | None = Field(default=None, max_length=255)
    html_content: str | None = None
    content_type: ContentType = ContentType.MARKDOWN
    excerpt: str | None = None
    status: PostStatus | None = None
    publish_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    topic_id: int | None = None
    order: int = 0

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v

    @field_validator("content_type", "order", mode="before")
    @classmethod
    def default_when_blank(cls, v: Any, info: ValidationInfo) -> Any:
        if _blank_to_none(v) is None:
            return ContentType.MARKDOWN if info.field_name == "content_type" else 0
        return v


class PostUpdate(_PostFields):
    """Partial update; only fields present in the payload are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1)
    slug: str | None = Field(default=None, max_length=255)
    html_content: str | None = None
    content_type: ContentType | None = None
    excerpt: str | None = None
    status: PostStatus | None = None
    publish_date: datetime | None = None
    tags: list[str] | None = None
    topic_id: int | None = None
    order: int | None = None


class ScheduleRequest(CamelModel):
    publish_date: datetime

    @field_validator("publish_date")
    @classmethod
    def publish_date_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class AuthorSummary(CamelModel):
    id: int
    first_name: str
    last_name: str
    username: str


class TopicSummary(CamelModel):
    id: int
    name: str
    slug: str


class TagOut(CamelModel):
    id: int
    name: str


class PostOut(CamelModel):
    """Post as returned by list and mutation endpoints."""

    id: int
    title: str
    slug: str
    content: str
    html_content: str | None = None
    content_type: str
    excerpt: str | None = None
    status: PostStatus
    publish_date: datetime | None = None
    is_scheduled: bool
    preview_image_url: str | None = None
    order: int
    read_count: int
    read_time: int
    author_id: int
    topic_id: int | None = None
    author: AuthorSummary | None = None
    topic: TopicSummary | None = None
    tags: list[TagOut] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PostLink(CamelModel):
    slug: str
    title: str


class PostNavigation(CamelModel):
    prev_post: PostLink | None = None
    next_post: PostLink | None = None


class PostDetail(PostOut):
    navigation: PostNavigation


class PostListResponse(ApiResponse[list[PostOut]]):
    count: int


class AutoPublishResult(CamelModel):
    published: int = Field(..., ge=0, description="Number of scheduled posts that became published.")
