"""Unit tests for the post publication state machine, slugs and read time."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from inkwell.core.errors import PermissionDenied, ValidationFailed
from inkwell.models import Post, PostStatus
from inkwell.services.publication import (
    apply_publication,
    auto_publish_due_posts,
    calculate_read_time,
    ensure_owner,
    normalize_slug,
    publish_post,
    resolve_publication,
    schedule_post,
    slugify,
    unpublish_post,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


class TestResolvePublication(unittest.TestCase):
    def test_defaults_to_draft(self) -> None:
        state = resolve_publication(None, None, now=NOW)
        self.assertEqual(state.status, PostStatus.DRAFT)
        self.assertIsNone(state.publish_date)
        self.assertFalse(state.is_scheduled)

    def test_future_date_schedules(self) -> None:
        future = NOW + timedelta(days=1)
        state = resolve_publication(None, future, now=NOW)
        self.assertEqual(state.status, PostStatus.SCHEDULED)
        self.assertEqual(state.publish_date, future)
        self.assertTrue(state.is_scheduled)

    def test_future_date_overrides_draft_status(self) -> None:
        state = resolve_publication(PostStatus.DRAFT, NOW + timedelta(hours=1), now=NOW)
        self.assertEqual(state.status, PostStatus.SCHEDULED)
        self.assertTrue(state.is_scheduled)

    def test_past_date_publishes_at_that_date(self) -> None:
        past = NOW - timedelta(days=2)
        state = resolve_publication(None, past, now=NOW)
        self.assertEqual(state.status, PostStatus.PUBLISHED)
        self.assertEqual(state.publish_date, past)
        self.assertFalse(state.is_scheduled)

    def test_explicit_published_without_date_uses_now(self) -> None:
        state = resolve_publication(PostStatus.PUBLISHED, None, now=NOW)
        self.assertEqual(state.status, PostStatus.PUBLISHED)
        self.assertEqual(state.publish_date, NOW)

    def test_explicit_published_with_future_date_uses_now(self) -> None:
        state = resolve_publication(PostStatus.PUBLISHED, NOW + timedelta(days=3), now=NOW)
        self.assertEqual(state.status, PostStatus.PUBLISHED)
        self.assertEqual(state.publish_date, NOW)
        self.assertFalse(state.is_scheduled)

    def test_requested_status_kept_without_date(self) -> None:
        state = resolve_publication(PostStatus.SCHEDULED, None, now=NOW)
        self.assertEqual(state.status, PostStatus.SCHEDULED)
        self.assertFalse(state.is_scheduled)


class TestTransitions(unittest.TestCase):
    def _post(self) -> Post:
        post = Post(title="t", content="c", author_id=1)
        apply_publication(post, resolve_publication(None, None, now=NOW))
        return post

    def test_publish(self) -> None:
        post = self._post()
        publish_post(post, now=NOW)
        self.assertEqual(post.status, PostStatus.PUBLISHED.value)
        self.assertEqual(post.publish_date, NOW)
        self.assertFalse(post.is_scheduled)

    def test_unpublish_waits_for_new_date(self) -> None:
        post = self._post()
        publish_post(post, now=NOW)
        unpublish_post(post)
        self.assertEqual(post.status, PostStatus.SCHEDULED.value)
        self.assertIsNone(post.publish_date)
        self.assertFalse(post.is_scheduled)

    def test_schedule_requires_future_date(self) -> None:
        post = self._post()
        with self.assertRaises(ValidationFailed) as ctx:
            schedule_post(post, NOW, now=NOW)
        self.assertIn("publishDate", ctx.exception.errors)
        self.assertEqual(post.status, PostStatus.DRAFT.value)

    def test_schedule_future_date(self) -> None:
        post = self._post()
        when = NOW + timedelta(minutes=5)
        schedule_post(post, when, now=NOW)
        self.assertEqual(post.status, PostStatus.SCHEDULED.value)
        self.assertEqual(post.publish_date, when)
        self.assertTrue(post.is_scheduled)

    def test_ensure_owner(self) -> None:
        post = self._post()
        ensure_owner(post, MagicMock(id=1))
        with self.assertRaises(PermissionDenied):
            ensure_owner(post, MagicMock(id=2))


class TestAutoPublishSweep(unittest.TestCase):
    """The sweep is one bulk update; it commits only when something changed."""

    def test_nothing_due_does_not_commit(self) -> None:
        session = MagicMock()
        session.query.return_value.filter.return_value.update.return_value = 0
        self.assertEqual(auto_publish_due_posts(session, now=NOW), 0)
        session.commit.assert_not_called()

    def test_due_posts_are_published_in_one_update(self) -> None:
        session = MagicMock()
        update = session.query.return_value.filter.return_value.update
        update.return_value = 3
        self.assertEqual(auto_publish_due_posts(session, now=NOW), 3)
        update.assert_called_once()
        values = update.call_args.args[0]
        self.assertEqual(values[Post.status], PostStatus.PUBLISHED.value)
        self.assertFalse(values[Post.is_scheduled])
        session.commit.assert_called_once()


class TestSlugsAndReadTime(unittest.TestCase):
    def test_normalize_slug(self) -> None:
        self.assertEqual(normalize_slug("  Hello,   World!  "), "hello-world")
        self.assertEqual(normalize_slug("---"), "")

    def test_slugify_adds_unique_suffix(self) -> None:
        first = slugify("Hello World")
        second = slugify("Hello World")
        self.assertTrue(first.startswith("hello-world-"))
        self.assertNotEqual(first, second)

    def test_slugify_blank_title(self) -> None:
        self.assertTrue(slugify("!!!").startswith("post-"))

    def test_read_time(self) -> None:
        self.assertEqual(calculate_read_time(""), 1)
        self.assertEqual(calculate_read_time("word " * 200), 1)
        self.assertEqual(calculate_read_time("word " * 201), 2)
        self.assertEqual(calculate_read_time("word " * 400), 2)
        self.assertEqual(calculate_read_time("a\n\nb\tc"), 1)


if __name__ == "__main__":
    unittest.main()
