"""ORM models for the topic hierarchy and flat categories."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from inkwell.models.base import Base


class Topic(Base):
    """Hierarchical topic; a topic with children or posts cannot be deleted."""

    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    parent_id = Column(
        Integer,
        ForeignKey("topics.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    parent = relationship("Topic", remote_side=[id], back_populates="children")
    children = relationship(
        "Topic",
        back_populates="parent",
        order_by="Topic.order",
    )
    posts = relationship("Post", back_populates="topic")


class Category(Base):
    """Flat category list."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
