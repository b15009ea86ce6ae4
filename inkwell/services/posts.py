"""Post CRUD, tag association and read paths (each read path runs the auto-publish sweep first)."""

import logging

from sqlalchemy.orm import Query, Session, selectinload

from inkwell.core.errors import ConflictError, NotFoundError, ValidationFailed
from inkwell.core.timeutil import ensure_utc
from inkwell.models import Post, PostStatus, PostTag, Tag, Topic
from inkwell.schemas.auth import CurrentUser
from inkwell.schemas.post import PostCreate, PostLink, PostNavigation, PostUpdate
from inkwell.services.publication import (
    apply_publication,
    auto_publish_due_posts,
    calculate_read_time,
    ensure_owner,
    generate_unique_slug,
    normalize_slug,
    resolve_publication,
)

logger = logging.getLogger(__name__)

MAX_TAG_LEN = 64
MAX_PAGE_SIZE = 100


def _with_relations(query: Query) -> Query:
    return query.options(
        selectinload(Post.author),
        selectinload(Post.topic),
        selectinload(Post.post_tags).selectinload(PostTag.tag),
    )


def get_post_or_404(db: Session, post_id: int) -> Post:
    post = _with_relations(db.query(Post)).filter(Post.id == post_id).first()
    if post is None:
        raise NotFoundError("Post not found")
    return post


def get_owned_post(db: Session, post_id: int, user: CurrentUser) -> Post:
    """Load a post the caller authored: 404 if missing, 403 if someone else's."""
    post = get_post_or_404(db, post_id)
    ensure_owner(post, user)
    return post


def _check_topic(db: Session, topic_id: int | None) -> None:
    if topic_id is not None and db.get(Topic, topic_id) is None:
        raise ValidationFailed("Topic not found", errors={"topicId": "Topic not found"})


def _claim_slug(db: Session, requested: str, exclude_id: int | None = None) -> str:
    """Normalize a client-supplied slug and make sure no other post uses it."""
    slug = normalize_slug(requested)
    if not slug:
        raise ValidationFailed("Invalid slug", errors={"slug": "Slug must contain letters or digits"})
    query = db.query(Post.id).filter(Post.slug == slug)
    if exclude_id is not None:
        query = query.filter(Post.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A post with this slug already exists")
    return slug


def clean_tag_names(names: list[str]) -> list[str]:
    """Lowercase and trim, drop blanks and duplicates, keep first-seen order."""
    cleaned: list[str] = []
    for name in names:
        value = str(name).strip().lower()[:MAX_TAG_LEN]
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def sync_tags(db: Session, post: Post, names: list[str]) -> None:
    """Replace the post's tags with names (upserting Tag rows), preserving order."""
    if post.post_tags:
        post.post_tags = []
        db.flush()
    cleaned = clean_tag_names(names)
    if not cleaned:
        return
    existing = {t.name: t for t in db.query(Tag).filter(Tag.name.in_(cleaned)).all()}
    associations = []
    for position, name in enumerate(cleaned):
        tag = existing.get(name)
        if tag is None:
            tag = Tag(name=name)
            db.add(tag)
        associations.append(PostTag(tag=tag, position=position))
    post.post_tags = associations


def create_post(
    db: Session,
    author: CurrentUser,
    body: PostCreate,
    preview_image_url: str | None = None,
) -> Post:
    _check_topic(db, body.topic_id)
    slug = _claim_slug(db, body.slug) if body.slug else generate_unique_slug(db, body.title)
    post = Post(
        title=body.title,
        slug=slug,
        content=body.content,
        html_content=body.html_content,
        content_type=body.content_type.value,
        excerpt=body.excerpt,
        order=body.order,
        read_count=0,
        read_time=calculate_read_time(body.content),
        preview_image_url=preview_image_url,
        author_id=author.id,
        topic_id=body.topic_id,
    )
    apply_publication(post, resolve_publication(body.status, body.publish_date))
    db.add(post)
    sync_tags(db, post, body.tags)
    db.commit()
    logger.info("Created post id=%s status=%s author id=%s", post.id, post.status, author.id)
    return get_post_or_404(db, post.id)


def update_post(
    db: Session,
    post: Post,
    body: PostUpdate,
    preview_image_url: str | None = None,
) -> Post:
    """Apply the fields present in body; publication state is re-resolved only when asked."""
    fields = body.model_fields_set

    if body.title is not None and body.title.strip():
        post.title = body.title.strip()
    if body.content is not None:
        post.content = body.content
        post.read_time = calculate_read_time(body.content)
    if "slug" in fields and body.slug:
        post.slug = _claim_slug(db, body.slug, exclude_id=post.id)
    if "html_content" in fields:
        post.html_content = body.html_content
    if body.content_type is not None:
        post.content_type = body.content_type.value
    if "excerpt" in fields:
        post.excerpt = body.excerpt
    if "topic_id" in fields:
        _check_topic(db, body.topic_id)
        post.topic_id = body.topic_id
    if body.order is not None:
        post.order = body.order
    if preview_image_url:
        post.preview_image_url = preview_image_url

    # Blank form fields arrive as None and leave publication untouched.
    status_sent = "status" in fields and body.status is not None
    date_sent = "publish_date" in fields and body.publish_date is not None
    if status_sent or date_sent:
        if date_sent:
            publish_date = body.publish_date
        elif body.status == PostStatus.SCHEDULED and post.publish_date is not None:
            publish_date = ensure_utc(post.publish_date)
        else:
            publish_date = None
        apply_publication(post, resolve_publication(body.status, publish_date))

    if body.tags is not None:
        sync_tags(db, post, body.tags)

    db.commit()
    return get_post_or_404(db, post.id)


def delete_post(db: Session, post: Post) -> None:
    db.delete(post)
    db.commit()
    logger.info("Deleted post id=%s", post.id)


def list_posts(
    db: Session,
    status: PostStatus | None = None,
    topic: str | None = None,
    tag: str | None = None,
    author_id: int | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> list[Post]:
    """Newest first, after publishing anything that has come due."""
    auto_publish_due_posts(db)
    query = _with_relations(db.query(Post))
    if status is not None:
        query = query.filter(Post.status == status.value)
    if topic:
        query = query.filter(Post.topic.has(Topic.slug == topic))
    if tag:
        query = query.filter(Post.post_tags.any(PostTag.tag.has(Tag.name == tag.strip().lower())))
    if author_id is not None:
        query = query.filter(Post.author_id == author_id)
    query = query.order_by(Post.created_at.desc(), Post.id.desc())
    if offset:
        query = query.offset(max(0, offset))
    if limit:
        query = query.limit(min(MAX_PAGE_SIZE, max(1, limit)))
    return query.all()


def _navigation(db: Session, post: Post) -> PostNavigation:
    """Previous/next published posts in the same topic, by order."""
    siblings = db.query(Post.id, Post.slug, Post.title).filter(
        Post.status == PostStatus.PUBLISHED.value
    )
    if post.topic_id is None:
        siblings = siblings.filter(Post.topic_id.is_(None))
    else:
        siblings = siblings.filter(Post.topic_id == post.topic_id)
    rows = siblings.order_by(Post.order.asc(), Post.id.asc()).all()
    ids = [row.id for row in rows]
    if post.id not in ids:
        return PostNavigation()
    index = ids.index(post.id)
    prev_row = rows[index - 1] if index > 0 else None
    next_row = rows[index + 1] if index < len(rows) - 1 else None
    return PostNavigation(
        prev_post=PostLink(slug=prev_row.slug, title=prev_row.title) if prev_row else None,
        next_post=PostLink(slug=next_row.slug, title=next_row.title) if next_row else None,
    )


def get_post_detail(db: Session, slug: str) -> tuple[Post, PostNavigation]:
    """Load a post by slug, count the read, and compute topic navigation."""
    auto_publish_due_posts(db)
    post = _with_relations(db.query(Post)).filter(Post.slug == slug.strip()).first()
    if post is None:
        raise NotFoundError("Post not found")
    db.query(Post).filter(Post.id == post.id).update(
        {Post.read_count: Post.read_count + 1}, synchronize_session=False
    )
    db.commit()
    post = get_post_or_404(db, post.id)
    return post, _navigation(db, post)


def list_scheduled_posts(db: Session, user: CurrentUser) -> list[Post]:
    """The caller's posts still waiting for their publish date, soonest first."""
    auto_publish_due_posts(db)
    return (
        _with_relations(db.query(Post))
        .filter(
            Post.author_id == user.id,
            Post.is_scheduled.is_(True),
            Post.status == PostStatus.SCHEDULED.value,
        )
        .order_by(Post.publish_date.asc())
        .all()
    )
