"""SQLAlchemy ORM models."""

from inkwell.models.base import Base
from inkwell.models.post import ContentType, Post, PostStatus, PostTag, Tag
from inkwell.models.topic import Category, Topic
from inkwell.models.user import User

__all__ = [
    "Base",
    "Category",
    "ContentType",
    "Post",
    "PostStatus",
    "PostTag",
    "Tag",
    "Topic",
    "User",
]
