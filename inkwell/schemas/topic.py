"""Request/response schemas for topics and categories."""

from datetime import datetime

from pydantic import Field

from inkwell.schemas.common import CamelModel
from inkwell.schemas.post import TopicSummary


class TopicCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    parent_id: int | None = None
    order: int = 0


class TopicUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    parent_id: int | None = None
    order: int | None = None


class TopicOut(CamelModel):
    id: int
    name: str
    slug: str
    parent_id: int | None = None
    order: int
    created_at: datetime | None = None


class TopicWithParent(TopicOut):
    parent: TopicSummary | None = None


class TopicDetail(TopicWithParent):
    children: list[TopicOut] = Field(default_factory=list)


class TopicNode(TopicOut):
    """Topic with its full subtree."""

    children: list["TopicNode"] = Field(default_factory=list)


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=255)


class CategoryOut(CamelModel):
    id: int
    name: str
    slug: str
    created_at: datetime | None = None
