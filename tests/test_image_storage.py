"""Unit tests for the Cloudinary image upload client and the post image policy."""

import asyncio
import hashlib
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from pydantic import SecretStr

from inkwell.core.errors import ValidationFailed
from inkwell.services.image_storage import (
    ImageStorageError,
    ImageStorageNotConfiguredError,
    is_storage_configured,
    sign_params,
    upload_image,
    upload_image_or_none,
    validate_image,
)


def _settings(configured: bool = True) -> MagicMock:
    settings = MagicMock()
    settings.CLOUDINARY_CLOUD_NAME = "demo" if configured else None
    settings.CLOUDINARY_API_KEY = "key" if configured else None
    settings.CLOUDINARY_API_SECRET = SecretStr("secret") if configured else None
    settings.CLOUDINARY_BASE_URL = "https://api.cloudinary.test/v1_1"
    settings.IMAGE_UPLOAD_FOLDER = "posts"
    settings.IMAGE_UPLOAD_TIMEOUT_SEC = 5.0
    settings.MAX_IMAGE_BYTES = 2 * 1024 * 1024
    return settings


def _client(response: MagicMock | None = None, error: Exception | None = None) -> MagicMock:
    client = MagicMock()
    client.post = AsyncMock(return_value=response, side_effect=error)
    return client


class TestValidation(unittest.TestCase):
    def test_allowed_extensions(self) -> None:
        for name in ("a.jpg", "b.JPEG", "c.png", "d.webp"):
            validate_image(name, 10, _settings())

    def test_rejects_other_types(self) -> None:
        with self.assertRaises(ValidationFailed) as ctx:
            validate_image("anim.gif", 10, _settings())
        self.assertIn("previewImage", ctx.exception.errors)

    def test_rejects_oversize(self) -> None:
        with self.assertRaises(ValidationFailed):
            validate_image("big.png", 2 * 1024 * 1024 + 1, _settings())

    def test_configured(self) -> None:
        self.assertTrue(is_storage_configured(_settings()))
        self.assertFalse(is_storage_configured(_settings(configured=False)))

    def test_signature(self) -> None:
        expected = hashlib.sha1(b"folder=posts&timestamp=100secret").hexdigest()
        self.assertEqual(sign_params({"timestamp": 100, "folder": "posts"}, "secret"), expected)


class TestUploadImage(unittest.TestCase):
    def test_returns_secure_url(self) -> None:
        response = MagicMock(status_code=200)
        response.json.return_value = {"secure_url": "https://cdn.test/posts/a.png"}
        client = _client(response)
        url = asyncio.run(upload_image(b"data", "a.png", "image/png", _settings(), client=client))
        self.assertEqual(url, "https://cdn.test/posts/a.png")
        args, kwargs = client.post.call_args
        self.assertEqual(args[0], "https://api.cloudinary.test/v1_1/demo/image/upload")
        self.assertEqual(kwargs["data"]["api_key"], "key")
        self.assertEqual(kwargs["data"]["folder"], "posts")
        self.assertIn("signature", kwargs["data"])

    def test_not_configured(self) -> None:
        with self.assertRaises(ImageStorageNotConfiguredError):
            asyncio.run(upload_image(b"x", "a.png", None, _settings(configured=False)))

    def test_error_status(self) -> None:
        client = _client(MagicMock(status_code=401))
        with self.assertRaises(ImageStorageError) as ctx:
            asyncio.run(upload_image(b"x", "a.png", None, _settings(), client=client))
        self.assertEqual(ctx.exception.status_code, 401)

    def test_timeout(self) -> None:
        client = _client(error=httpx.ReadTimeout("slow"))
        with self.assertRaises(ImageStorageError):
            asyncio.run(upload_image(b"x", "a.png", None, _settings(), client=client))

    def test_missing_secure_url(self) -> None:
        response = MagicMock(status_code=200)
        response.json.return_value = {}
        with self.assertRaises(ImageStorageError):
            asyncio.run(
                upload_image(b"x", "a.png", None, _settings(), client=_client(response))
            )


class TestUploadPolicy(unittest.TestCase):
    """Storage failures degrade to no image; bad input still fails the request."""

    @patch("inkwell.services.image_storage.upload_image")
    def test_storage_failure_yields_none(self, mock_upload: MagicMock) -> None:
        mock_upload.side_effect = ImageStorageError("down", 503)
        with self.assertLogs("inkwell.services.image_storage", level="WARNING"):
            result = asyncio.run(upload_image_or_none(b"x", "a.png", None, _settings()))
        self.assertIsNone(result)

    @patch("inkwell.services.image_storage.upload_image")
    def test_success_passes_url_through(self, mock_upload: MagicMock) -> None:
        mock_upload.return_value = "https://cdn.test/x.png"
        result = asyncio.run(upload_image_or_none(b"x", "a.png", None, _settings()))
        self.assertEqual(result, "https://cdn.test/x.png")

    @patch("inkwell.services.image_storage.upload_image")
    def test_invalid_file_raises(self, mock_upload: MagicMock) -> None:
        with self.assertRaises(ValidationFailed):
            asyncio.run(upload_image_or_none(b"x", "a.bmp", None, _settings()))
        mock_upload.assert_not_called()


if __name__ == "__main__":
    unittest.main()
