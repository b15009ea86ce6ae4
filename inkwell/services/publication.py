"""
Post publication state machine: DRAFT -> SCHEDULED -> PUBLISHED.

There is no scheduler process. auto_publish_due_posts runs at the start of every
post read path and flips due SCHEDULED posts to PUBLISHED in one bulk update.
"""

import logging
import math
import re
import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from inkwell.core.errors import PermissionDenied, ValidationFailed
from inkwell.core.timeutil import utcnow
from inkwell.models import Post, PostStatus, PostTag
from inkwell.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200

# Slug suffix: base36 millisecond timestamp plus random base36 characters.
SLUG_RANDOM_LEN = 6
MAX_SLUG_ATTEMPTS = 5
_BASE36 = string.digits + string.ascii_lowercase
_NON_WORD_RUN = re.compile(r"[^\w]+")


@dataclass(frozen=True)
class PublicationState:
    """Resolved (status, publish_date, is_scheduled) triple for a post."""

    status: PostStatus
    publish_date: datetime | None
    is_scheduled: bool


def calculate_read_time(content: str | None) -> int:
    """Minutes to read content at WORDS_PER_MINUTE, rounded up, never below 1."""
    if not content:
        return 1
    words = len(content.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def normalize_slug(text: str) -> str:
    """Lowercase, trim, collapse non-word runs into single hyphens, trim edge hyphens."""
    return _NON_WORD_RUN.sub("-", text.strip().lower()).strip("-")


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def slugify(title: str) -> str:
    """
    Build a slug from a title with a collision-breaking suffix.

    Two calls with the same title never return the same slug: the suffix combines
    the current millisecond timestamp with random characters.
    """
    base = normalize_slug(title) or "post"
    timestamp = _base36(time.time_ns() // 1_000_000)
    token = "".join(secrets.choice(_BASE36) for _ in range(SLUG_RANDOM_LEN))
    return f"{base}-{timestamp}{token}"


def generate_unique_slug(db: Session, title: str) -> str:
    """Slugify title and confirm against the store; retries a bounded number of times."""
    for _ in range(MAX_SLUG_ATTEMPTS):
        slug = slugify(title)
        if db.query(Post.id).filter(Post.slug == slug).first() is None:
            return slug
    raise RuntimeError(f"Could not generate a unique slug after {MAX_SLUG_ATTEMPTS} attempts")


def resolve_publication(
    status: PostStatus | None,
    publish_date: datetime | None,
    now: datetime | None = None,
) -> PublicationState:
    """
    Decide the publication state for a create/update payload.

    - explicit PUBLISHED: published now (or at the given date if already past)
    - future publish_date: SCHEDULED and flagged for the sweep
    - past or present publish_date: PUBLISHED at that date
    - no publish_date: the requested status, DRAFT by default
    """
    now = now or utcnow()
    if status == PostStatus.PUBLISHED:
        if publish_date is None or publish_date > now:
            publish_date = now
        return PublicationState(PostStatus.PUBLISHED, publish_date, False)
    if publish_date is not None:
        if publish_date > now:
            return PublicationState(PostStatus.SCHEDULED, publish_date, True)
        return PublicationState(PostStatus.PUBLISHED, publish_date, False)
    return PublicationState(status or PostStatus.DRAFT, None, False)


def apply_publication(post: Post, state: PublicationState) -> None:
    post.status = state.status.value
    post.publish_date = state.publish_date
    post.is_scheduled = state.is_scheduled


def ensure_owner(post: Post, user: CurrentUser) -> None:
    """Raise PermissionDenied unless user authored post."""
    if post.author_id != user.id:
        raise PermissionDenied("You can only modify your own posts")


def publish_post(post: Post, now: datetime | None = None) -> None:
    """Force PUBLISHED with publish_date = now."""
    apply_publication(post, PublicationState(PostStatus.PUBLISHED, now or utcnow(), False))


def unpublish_post(post: Post) -> None:
    """Back to an unscheduled SCHEDULED state, waiting for a new date."""
    apply_publication(post, PublicationState(PostStatus.SCHEDULED, None, False))


def schedule_post(post: Post, publish_date: datetime, now: datetime | None = None) -> None:
    """Schedule for a strictly future date. Raises ValidationFailed otherwise."""
    now = now or utcnow()
    if publish_date <= now:
        raise ValidationFailed(
            "Publish date must be in the future",
            errors={"publishDate": "Publish date must be in the future"},
        )
    apply_publication(post, PublicationState(PostStatus.SCHEDULED, publish_date, True))


def duplicate_post(db: Session, post: Post) -> Post:
    """Copy post into a new DRAFT with a fresh slug and no schedule; tags keep their order."""
    title = f"{post.title} (Copy)"
    copy = Post(
        title=title,
        slug=generate_unique_slug(db, title),
        content=post.content,
        html_content=post.html_content,
        content_type=post.content_type,
        excerpt=post.excerpt,
        status=PostStatus.DRAFT.value,
        publish_date=None,
        is_scheduled=False,
        preview_image_url=post.preview_image_url,
        order=post.order,
        read_count=0,
        read_time=calculate_read_time(post.content),
        author_id=post.author_id,
        topic_id=post.topic_id,
    )
    copy.post_tags = [
        PostTag(tag_id=pt.tag_id, position=pt.position) for pt in post.post_tags
    ]
    db.add(copy)
    return copy


def auto_publish_due_posts(db: Session, now: datetime | None = None) -> int:
    """
    Publish every scheduled post whose publish_date has passed, in one statement.

    Returns the number of posts published; commits only when that is non-zero.
    Not isolated from concurrent single-post updates (last write wins).
    """
    now = now or utcnow()
    published = (
        db.query(Post)
        .filter(
            Post.is_scheduled.is_(True),
            Post.status == PostStatus.SCHEDULED.value,
            Post.publish_date <= now,
        )
        .update(
            {
                Post.status: PostStatus.PUBLISHED.value,
                Post.is_scheduled: False,
            },
            synchronize_session=False,
        )
    )
    if published:
        db.commit()
        logger.info("Auto-publish sweep: published=%s now=%s", published, now.isoformat())
    return published
