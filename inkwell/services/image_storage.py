"""Upload post preview images to Cloudinary and return their public URL."""

from __future__ import annotations

import hashlib
import logging
import time
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

import httpx

from inkwell.core.errors import ValidationFailed

if TYPE_CHECKING:
    from inkwell.core.config import Settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})


class ImageStorageNotConfiguredError(Exception):
    """Raised when an upload is attempted but Cloudinary credentials are missing."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ImageStorageError(Exception):
    """Raised when the storage service is unreachable or rejects the upload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def is_storage_configured(settings: Settings) -> bool:
    if not settings.CLOUDINARY_CLOUD_NAME or not settings.CLOUDINARY_CLOUD_NAME.strip():
        return False
    if not settings.CLOUDINARY_API_KEY or not settings.CLOUDINARY_API_KEY.strip():
        return False
    if settings.CLOUDINARY_API_SECRET is None:
        return False
    return bool(settings.CLOUDINARY_API_SECRET.get_secret_value().strip())


def validate_image(filename: str, size: int, settings: Settings) -> None:
    """Reject unsupported extensions and oversize files with a 400."""
    ext = PurePath(filename or "").suffix.lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        allowed = ", ".join(sorted(e.lstrip(".") for e in ALLOWED_IMAGE_EXTENSIONS))
        raise ValidationFailed(
            "Unsupported image type",
            errors={"previewImage": f"Image must be one of: {allowed}"},
        )
    if size > settings.MAX_IMAGE_BYTES:
        raise ValidationFailed(
            "Image is too large",
            errors={
                "previewImage": f"Image must not exceed {settings.MAX_IMAGE_BYTES // (1024 * 1024)} MB"
            },
        )


def _get_api_secret(settings: Settings) -> str:
    if settings.CLOUDINARY_API_SECRET is None:
        raise ImageStorageNotConfiguredError("CLOUDINARY_API_SECRET is not set.")
    return settings.CLOUDINARY_API_SECRET.get_secret_value()


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """Cloudinary request signature: sha1 of sorted key=value pairs joined by '&' plus the secret."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


async def upload_image(
    data: bytes,
    filename: str,
    content_type: str | None,
    settings: Settings,
    client: httpx.AsyncClient | None = None,
) -> str:
    """
    Upload one image and return its secure URL.

    Raises ImageStorageNotConfiguredError or ImageStorageError.
    """
    if not is_storage_configured(settings):
        raise ImageStorageNotConfiguredError("Cloudinary credentials are not configured.")

    params: dict[str, Any] = {
        "folder": settings.IMAGE_UPLOAD_FOLDER,
        "timestamp": int(time.time()),
    }
    form = {
        **{k: str(v) for k, v in params.items()},
        "api_key": settings.CLOUDINARY_API_KEY,
        "signature": sign_params(params, _get_api_secret(settings)),
    }
    url = f"{settings.CLOUDINARY_BASE_URL}/{settings.CLOUDINARY_CLOUD_NAME}/image/upload"
    files = {"file": (filename, data, content_type or "application/octet-stream")}

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.IMAGE_UPLOAD_TIMEOUT_SEC)
    try:
        resp = await http.post(url, data=form, files=files)
    except httpx.TimeoutException as e:
        raise ImageStorageError("Image storage timed out.") from e
    except httpx.RequestError as e:
        raise ImageStorageError(f"Image storage unreachable: {e!s}") from e
    finally:
        if owns_client:
            await http.aclose()

    if resp.status_code >= 400:
        raise ImageStorageError(
            f"Image storage returned status {resp.status_code}.", resp.status_code
        )
    try:
        secure_url = resp.json().get("secure_url")
    except ValueError as e:
        raise ImageStorageError("Image storage returned invalid JSON.") from e
    if not secure_url:
        raise ImageStorageError("Image storage response did not include secure_url.")
    return secure_url


async def upload_image_or_none(
    data: bytes,
    filename: str,
    content_type: str | None,
    settings: Settings,
) -> str | None:
    """
    Upload policy for post create and update: storage failures are logged and the
    post is saved without an image.
    """
    validate_image(filename, len(data), settings)
    try:
        return await upload_image(data, filename, content_type, settings)
    except ImageStorageNotConfiguredError as e:
        logger.warning("Skipping preview image upload: %s", e.message)
    except ImageStorageError as e:
        logger.warning(
            "Preview image upload failed (status=%s): %s", e.status_code, e.message
        )
    return None
