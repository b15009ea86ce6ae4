"""Topic tree and category CRUD."""

import logging

from sqlalchemy.orm import Session, selectinload

from inkwell.core.errors import ConflictError, NotFoundError, ValidationFailed
from inkwell.models import Category, Post, Topic
from inkwell.schemas.topic import CategoryCreate, TopicCreate, TopicNode, TopicOut, TopicUpdate
from inkwell.services.publication import normalize_slug

logger = logging.getLogger(__name__)


def _slug_from(name: str, slug: str | None) -> str:
    value = normalize_slug(slug or name)
    if not value:
        raise ValidationFailed("Invalid slug", errors={"slug": "Slug must contain letters or digits"})
    return value


def get_topic_or_404(db: Session, topic_id: int) -> Topic:
    topic = db.get(Topic, topic_id)
    if topic is None:
        raise NotFoundError("Topic not found")
    return topic


def get_topic_by_slug(db: Session, slug: str) -> Topic:
    topic = (
        db.query(Topic)
        .options(selectinload(Topic.parent), selectinload(Topic.children))
        .filter(Topic.slug == slug.strip())
        .first()
    )
    if topic is None:
        raise NotFoundError("Topic not found")
    return topic


def list_topics(db: Session) -> list[Topic]:
    return (
        db.query(Topic)
        .options(selectinload(Topic.parent))
        .order_by(Topic.order.asc(), Topic.id.asc())
        .all()
    )


def topic_tree(db: Session) -> list[TopicNode]:
    """Build the full-depth tree from one flat query."""
    topics = db.query(Topic).order_by(Topic.order.asc(), Topic.id.asc()).all()
    nodes = {t.id: TopicNode(**TopicOut.model_validate(t).model_dump()) for t in topics}
    roots: list[TopicNode] = []
    for topic in topics:
        node = nodes[topic.id]
        parent = nodes.get(topic.parent_id) if topic.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


def _check_slug_free(db: Session, slug: str, exclude_id: int | None = None) -> None:
    query = db.query(Topic.id).filter(Topic.slug == slug)
    if exclude_id is not None:
        query = query.filter(Topic.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A topic with this slug already exists")


def _check_parent(db: Session, parent_id: int | None) -> None:
    if parent_id is not None and db.get(Topic, parent_id) is None:
        raise ValidationFailed("Parent topic not found", errors={"parentId": "Parent topic not found"})


def _is_in_subtree(db: Session, topic_id: int, candidate_id: int) -> bool:
    """True if candidate_id is topic_id itself or one of its descendants."""
    current = candidate_id
    seen = set()
    while current is not None and current not in seen:
        if current == topic_id:
            return True
        seen.add(current)
        current = db.query(Topic.parent_id).filter(Topic.id == current).scalar()
    return False


def create_topic(db: Session, body: TopicCreate) -> Topic:
    slug = _slug_from(body.name, body.slug)
    _check_slug_free(db, slug)
    _check_parent(db, body.parent_id)
    topic = Topic(name=body.name.strip(), slug=slug, parent_id=body.parent_id, order=body.order)
    db.add(topic)
    db.commit()
    db.refresh(topic)
    logger.info("Created topic id=%s slug=%s", topic.id, topic.slug)
    return topic


def update_topic(db: Session, topic_id: int, body: TopicUpdate) -> Topic:
    topic = get_topic_or_404(db, topic_id)
    fields = body.model_fields_set

    if body.name is not None:
        topic.name = body.name.strip()
    if "slug" in fields and body.slug:
        slug = _slug_from(topic.name, body.slug)
        _check_slug_free(db, slug, exclude_id=topic.id)
        topic.slug = slug
    if "parent_id" in fields:
        if body.parent_id is not None:
            _check_parent(db, body.parent_id)
            if _is_in_subtree(db, topic.id, body.parent_id):
                raise ValidationFailed(
                    "A topic cannot be moved under itself or one of its subtopics",
                    errors={"parentId": "Invalid parent topic"},
                )
        topic.parent_id = body.parent_id
    if body.order is not None:
        topic.order = body.order

    db.commit()
    db.refresh(topic)
    return topic


def delete_topic(db: Session, topic_id: int) -> None:
    """Delete a leaf topic with no posts; anything else is a 400 and nothing changes."""
    topic = get_topic_or_404(db, topic_id)
    if db.query(Topic.id).filter(Topic.parent_id == topic.id).first() is not None:
        raise ValidationFailed("Cannot delete a topic that has subtopics")
    if db.query(Post.id).filter(Post.topic_id == topic.id).first() is not None:
        raise ValidationFailed("Cannot delete a topic that has posts")
    db.delete(topic)
    db.commit()
    logger.info("Deleted topic id=%s", topic_id)


def list_categories(db: Session) -> list[Category]:
    return db.query(Category).order_by(Category.name.asc()).all()


def create_category(db: Session, body: CategoryCreate) -> Category:
    slug = _slug_from(body.name, body.slug)
    if db.query(Category.id).filter(Category.slug == slug).first() is not None:
        raise ConflictError("A category with this slug already exists")
    category = Category(name=body.name.strip(), slug=slug)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category
