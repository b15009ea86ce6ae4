"""Refresh-token cookie lifecycle."""

from typing import Any

from fastapi import Response

from inkwell.core.config import Settings


def refresh_cookie_options(settings: Settings) -> dict[str, Any]:
    """Cookie attributes shared by set and clear so the browser matches them up."""
    return {
        "httponly": True,
        "path": "/",
        "secure": not settings.is_development,
        "samesite": "lax" if settings.is_development else "none",
    }


def set_refresh_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=token,
        max_age=settings.refresh_token_max_age,
        **refresh_cookie_options(settings),
    )


def clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        **refresh_cookie_options(settings),
    )
