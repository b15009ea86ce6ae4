"""ORM models for posts, tags and their ordered association."""

from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from inkwell.models.base import Base


class PostStatus(str, Enum):
    """Publication states of a post."""

    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    PUBLISHED = "PUBLISHED"


class ContentType(str, Enum):
    """How the raw content field is encoded."""

    MARKDOWN = "MARKDOWN"
    EDITOR = "EDITOR"


class Post(Base):
    """
    Blog post owned by a user, optionally filed under a topic.

    is_scheduled=True means publish_date is in the future and status is SCHEDULED;
    the read-path sweep flips due posts to PUBLISHED.
    """

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(320), nullable=False, unique=True, index=True)
    content = Column(Text, nullable=False)
    html_content = Column(Text, nullable=True)
    content_type = Column(String(16), nullable=False, default=ContentType.MARKDOWN.value)
    excerpt = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default=PostStatus.DRAFT.value, index=True)
    publish_date = Column(DateTime(timezone=True), nullable=True, index=True)
    is_scheduled = Column(Boolean, nullable=False, default=False)
    preview_image_url = Column(String(1024), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    read_count = Column(Integer, nullable=False, default=0)
    read_time = Column(Integer, nullable=False, default=1)

    author_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    topic_id = Column(
        Integer,
        ForeignKey("topics.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    author = relationship("User", back_populates="posts")
    topic = relationship("Topic", back_populates="posts")
    post_tags = relationship(
        "PostTag",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="PostTag.position",
    )

    @property
    def tags(self) -> list["Tag"]:
        return [pt.tag for pt in self.post_tags]


class Tag(Base):
    """Tag name shared across posts (stored lowercase)."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False, unique=True, index=True)

    post_tags = relationship("PostTag", back_populates="tag")


class PostTag(Base):
    """Association between a post and a tag; position keeps tag order."""

    __tablename__ = "post_tags"
    __table_args__ = (UniqueConstraint("post_id", "tag_id", name="uq_post_tags_post_tag"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(
        Integer,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tag_id = Column(
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)

    post = relationship("Post", back_populates="post_tags")
    tag = relationship("Tag", back_populates="post_tags")
