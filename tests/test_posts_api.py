"""API tests for post CRUD, tags, publication transitions and the lazy auto-publish sweep."""

import unittest
from datetime import timedelta
from unittest.mock import patch

from inkwell.core.database import SessionLocal
from inkwell.core.roles import Role
from inkwell.core.timeutil import utcnow
from inkwell.models import Topic
from tests.support import ApiTestCase


class PostsTestCase(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.author = self.make_user("author")
        self.other = self.make_user("stranger")

    def create_post(self, user_id: int | None = None, **fields) -> dict:
        payload = {"title": "Hello World", "content": "Some words here", **fields}
        resp = self.client.post(
            "/api/posts", json=payload, headers=self.auth_headers(user_id or self.author)
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()["data"]

    def make_topic(self, name: str, order: int = 0) -> int:
        with SessionLocal() as db:
            topic = Topic(name=name, slug=name.lower(), order=order)
            db.add(topic)
            db.commit()
            return topic.id


class TestCreatePost(PostsTestCase):
    def test_defaults(self) -> None:
        post = self.create_post()
        self.assertEqual(post["status"], "DRAFT")
        self.assertFalse(post["isScheduled"])
        self.assertIsNone(post["publishDate"])
        self.assertTrue(post["slug"].startswith("hello-world-"))
        self.assertEqual(post["readTime"], 1)
        self.assertEqual(post["readCount"], 0)
        self.assertEqual(post["author"]["username"], "author")

    def test_same_title_gets_distinct_slugs(self) -> None:
        first = self.create_post()
        second = self.create_post()
        self.assertNotEqual(first["slug"], second["slug"])

    def test_explicit_slug_must_be_unique(self) -> None:
        post = self.create_post(slug="My Custom Slug")
        self.assertEqual(post["slug"], "my-custom-slug")
        resp = self.client.post(
            "/api/posts",
            json={"title": "x", "content": "y", "slug": "my-custom-slug"},
            headers=self.auth_headers(self.author),
        )
        self.assertEqual(resp.status_code, 409)

    def test_future_publish_date_schedules(self) -> None:
        when = (utcnow() + timedelta(days=1)).isoformat()
        post = self.create_post(publishDate=when)
        self.assertEqual(post["status"], "SCHEDULED")
        self.assertTrue(post["isScheduled"])

    def test_past_publish_date_publishes(self) -> None:
        when = (utcnow() - timedelta(days=1)).isoformat()
        post = self.create_post(publishDate=when)
        self.assertEqual(post["status"], "PUBLISHED")
        self.assertFalse(post["isScheduled"])

    def test_explicit_published(self) -> None:
        post = self.create_post(status="PUBLISHED")
        self.assertEqual(post["status"], "PUBLISHED")
        self.assertIsNotNone(post["publishDate"])

    def test_tags_are_normalized_and_ordered(self) -> None:
        post = self.create_post(tags=["  Python", "web", "python", ""])
        self.assertEqual([t["name"] for t in post["tags"]], ["python", "web"])
        other = self.create_post(tags=["web"])
        self.assertEqual(other["tags"][0]["id"], post["tags"][1]["id"])

    def test_missing_title(self) -> None:
        resp = self.client.post(
            "/api/posts", json={"content": "body"}, headers=self.auth_headers(self.author)
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("title", resp.json()["errors"])

    def test_unknown_topic(self) -> None:
        resp = self.client.post(
            "/api/posts",
            json={"title": "t", "content": "c", "topicId": 999},
            headers=self.auth_headers(self.author),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("topicId", resp.json()["errors"])

    def test_requires_authentication(self) -> None:
        resp = self.client.post("/api/posts", json={"title": "t", "content": "c"})
        self.assertEqual(resp.status_code, 401)

    def test_multipart_form_with_image_and_no_storage(self) -> None:
        resp = self.client.post(
            "/api/posts",
            data={"title": "Form post", "content": "from a form", "tags": "a, b"},
            files={"previewImage": ("cover.png", b"\x89PNG fake", "image/png")},
            headers=self.auth_headers(self.author),
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        post = resp.json()["data"]
        self.assertIsNone(post["previewImageUrl"])
        self.assertEqual([t["name"] for t in post["tags"]], ["a", "b"])

    def test_multipart_rejects_bad_image_type(self) -> None:
        resp = self.client.post(
            "/api/posts",
            data={"title": "Form post", "content": "from a form"},
            files={"previewImage": ("cover.gif", b"GIF89a", "image/gif")},
            headers=self.auth_headers(self.author),
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("previewImage", resp.json()["errors"])


class TestUpdateAndOwnership(PostsTestCase):
    def test_partial_update_keeps_publication_state(self) -> None:
        post = self.create_post(status="PUBLISHED")
        resp = self.client.put(
            f"/api/posts/{post['id']}",
            json={"content": "word " * 450},
            headers=self.auth_headers(self.author),
        )
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["status"], "PUBLISHED")
        self.assertEqual(data["publishDate"], post["publishDate"])
        self.assertEqual(data["readTime"], 3)

    def test_update_status_re_resolves(self) -> None:
        post = self.create_post()
        when = (utcnow() + timedelta(hours=2)).isoformat()
        resp = self.client.put(
            f"/api/posts/{post['id']}",
            json={"publishDate": when},
            headers=self.auth_headers(self.author),
        )
        self.assertEqual(resp.json()["data"]["status"], "SCHEDULED")
        self.assertTrue(resp.json()["data"]["isScheduled"])

    def test_form_update_with_blank_publication_fields_keeps_published(self) -> None:
        post = self.create_post(status="PUBLISHED")
        resp = self.client.put(
            f"/api/posts/{post['id']}",
            data={"title": "Renamed", "publishDate": "", "status": ""},
            headers=self.auth_headers(self.author),
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        data = resp.json()["data"]
        self.assertEqual(data["title"], "Renamed")
        self.assertEqual(data["status"], "PUBLISHED")
        self.assertEqual(data["publishDate"], post["publishDate"])
        self.assertFalse(data["isScheduled"])

    def test_update_replaces_tags(self) -> None:
        post = self.create_post(tags=["one", "two"])
        resp = self.client.put(
            f"/api/posts/{post['id']}",
            json={"tags": ["two", "three"]},
            headers=self.auth_headers(self.author),
        )
        self.assertEqual([t["name"] for t in resp.json()["data"]["tags"]], ["two", "three"])

    def test_non_owner_is_forbidden(self) -> None:
        post = self.create_post()
        headers = self.auth_headers(self.other)
        for method, suffix in (
            ("put", ""),
            ("delete", ""),
            ("patch", "/publish"),
            ("patch", "/unpublish"),
            ("post", "/duplicate"),
        ):
            kwargs = {"json": {"title": "x"}} if method == "put" else {}
            resp = getattr(self.client, method)(
                f"/api/posts/{post['id']}{suffix}", headers=headers, **kwargs
            )
            self.assertEqual(resp.status_code, 403, (method, suffix))
            self.assertEqual(resp.json()["code"], "FORBIDDEN")

    def test_missing_post(self) -> None:
        resp = self.client.delete("/api/posts/999", headers=self.auth_headers(self.author))
        self.assertEqual(resp.status_code, 404)

    def test_delete(self) -> None:
        post = self.create_post(tags=["gone"])
        resp = self.client.delete(f"/api/posts/{post['id']}", headers=self.auth_headers(self.author))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.client.get(f"/api/posts/{post['slug']}").status_code, 404)


class TestTransitionsApi(PostsTestCase):
    def test_publish_unpublish_schedule(self) -> None:
        post = self.create_post()
        headers = self.auth_headers(self.author)
        url = f"/api/posts/{post['id']}"

        published = self.client.patch(f"{url}/publish", headers=headers).json()["data"]
        self.assertEqual(published["status"], "PUBLISHED")
        self.assertIsNotNone(published["publishDate"])

        unpublished = self.client.patch(f"{url}/unpublish", headers=headers).json()["data"]
        self.assertEqual(unpublished["status"], "SCHEDULED")
        self.assertIsNone(unpublished["publishDate"])
        self.assertFalse(unpublished["isScheduled"])

        past = (utcnow() - timedelta(minutes=1)).isoformat()
        resp = self.client.patch(f"{url}/schedule", json={"publishDate": past}, headers=headers)
        self.assertEqual(resp.status_code, 400)

        future = (utcnow() + timedelta(days=2)).isoformat()
        scheduled = self.client.patch(
            f"{url}/schedule", json={"publishDate": future}, headers=headers
        ).json()["data"]
        self.assertEqual(scheduled["status"], "SCHEDULED")
        self.assertTrue(scheduled["isScheduled"])

    def test_duplicate(self) -> None:
        post = self.create_post(status="PUBLISHED", tags=["x", "y"], excerpt="short")
        resp = self.client.post(
            f"/api/posts/{post['id']}/duplicate", headers=self.auth_headers(self.author)
        )
        self.assertEqual(resp.status_code, 201)
        copy = resp.json()["data"]
        self.assertEqual(copy["title"], "Hello World (Copy)")
        self.assertEqual(copy["status"], "DRAFT")
        self.assertIsNone(copy["publishDate"])
        self.assertNotEqual(copy["slug"], post["slug"])
        self.assertEqual(copy["excerpt"], "short")
        self.assertEqual([t["name"] for t in copy["tags"]], ["x", "y"])

    def test_scheduled_list_is_per_author(self) -> None:
        soon = (utcnow() + timedelta(hours=1)).isoformat()
        later = (utcnow() + timedelta(days=1)).isoformat()
        self.create_post(title="Later", publishDate=later)
        self.create_post(title="Soon", publishDate=soon)
        self.create_post(user_id=self.other, title="Theirs", publishDate=soon)
        resp = self.client.get("/api/posts/scheduled", headers=self.auth_headers(self.author))
        self.assertEqual([p["title"] for p in resp.json()["data"]], ["Soon", "Later"])


class TestReadPaths(PostsTestCase):
    def test_sweep_publishes_due_posts_on_list(self) -> None:
        when = utcnow() + timedelta(hours=1)
        post = self.create_post(publishDate=when.isoformat())
        self.assertEqual(post["status"], "SCHEDULED")

        with patch(
            "inkwell.services.publication.utcnow", return_value=when + timedelta(hours=1)
        ):
            resp = self.client.get("/api/posts")
        listed = resp.json()["data"][0]
        self.assertEqual(listed["status"], "PUBLISHED")
        self.assertFalse(listed["isScheduled"])

    def test_sweep_leaves_future_posts(self) -> None:
        self.create_post(publishDate=(utcnow() + timedelta(hours=1)).isoformat())
        listed = self.client.get("/api/posts").json()["data"][0]
        self.assertEqual(listed["status"], "SCHEDULED")

    def test_admin_trigger(self) -> None:
        admin = self.make_user("boss", role=Role.ADMIN)
        when = utcnow() + timedelta(minutes=30)
        self.create_post(publishDate=when.isoformat())
        with patch(
            "inkwell.services.publication.utcnow", return_value=when + timedelta(minutes=1)
        ):
            resp = self.client.post("/api/posts/auto-publish", headers=self.auth_headers(admin))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["published"], 1)
        forbidden = self.client.post(
            "/api/posts/auto-publish", headers=self.auth_headers(self.author)
        )
        self.assertEqual(forbidden.status_code, 403)

    def test_list_filters(self) -> None:
        topic = self.make_topic("Guides")
        self.create_post(title="Tagged", tags=["python"], topicId=topic, status="PUBLISHED")
        self.create_post(title="Plain")
        self.create_post(user_id=self.other, title="Elsewhere")

        def titles(**params) -> list[str]:
            return [p["title"] for p in self.client.get("/api/posts", params=params).json()["data"]]

        self.assertEqual(titles(tag="Python"), ["Tagged"])
        self.assertEqual(titles(topic="guides"), ["Tagged"])
        self.assertEqual(titles(status="PUBLISHED"), ["Tagged"])
        self.assertEqual(titles(author=self.other), ["Elsewhere"])
        self.assertEqual(titles(limit=1), ["Elsewhere"])
        self.assertEqual(titles(limit=1, offset=1), ["Plain"])
        self.assertEqual(self.client.get("/api/posts").json()["count"], 3)

    def test_detail_counts_reads_and_navigates(self) -> None:
        topic = self.make_topic("Series")
        first = self.create_post(title="Part one", topicId=topic, order=1, status="PUBLISHED")
        second = self.create_post(title="Part two", topicId=topic, order=2, status="PUBLISHED")
        third = self.create_post(title="Part three", topicId=topic, order=3, status="PUBLISHED")
        self.create_post(title="Draft part", topicId=topic, order=4)

        resp = self.client.get(f"/api/posts/{second['slug']}")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["readCount"], 1)
        self.assertEqual(data["navigation"]["prevPost"]["slug"], first["slug"])
        self.assertEqual(data["navigation"]["nextPost"]["slug"], third["slug"])

        last = self.client.get(f"/api/posts/{third['slug']}").json()["data"]
        self.assertIsNone(last["navigation"]["nextPost"])
        again = self.client.get(f"/api/posts/{second['slug']}").json()["data"]
        self.assertEqual(again["readCount"], 2)

    def test_sweep_publishes_due_post_on_detail(self) -> None:
        when = utcnow() + timedelta(hours=1)
        post = self.create_post(publishDate=when.isoformat())
        self.assertEqual(post["status"], "SCHEDULED")

        with patch(
            "inkwell.services.publication.utcnow", return_value=when + timedelta(minutes=5)
        ):
            resp = self.client.get(f"/api/posts/{post['slug']}")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["status"], "PUBLISHED")
        self.assertFalse(data["isScheduled"])

    def test_detail_missing(self) -> None:
        self.assertEqual(self.client.get("/api/posts/nope").status_code, 404)

    def test_my_posts(self) -> None:
        self.create_post(title="Mine")
        self.create_post(user_id=self.other, title="Theirs")
        resp = self.client.get("/api/me/posts", headers=self.auth_headers(self.author))
        self.assertEqual([p["title"] for p in resp.json()["data"]], ["Mine"])


if __name__ == "__main__":
    unittest.main()
