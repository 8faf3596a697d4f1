"""Runtime configuration loaded from environment variables.

Values are read on every call so that a redeploy with new secrets (or a test
using monkeypatch) takes effect without module reloads.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})

DEFAULT_LANGUAGE_FALLBACK = "de"


@dataclass(frozen=True)
class AlpineBitsSettings:
    """Credentials and header policy for the AlpineBits endpoint.

    Attributes:
        username: Expected HTTP Basic username.
        password: Expected HTTP Basic password.
        require_client_id: Reject requests without X-AlpineBits-ClientID.
    """

    username: str | None = None
    password: str | None = None
    require_client_id: bool = False

    @property
    def credentials_configured(self) -> bool:
        return bool(self.username) and bool(self.password)


@dataclass(frozen=True)
class AppSettings:
    """Settings for the public and admin HTTP surfaces."""

    default_language: str = DEFAULT_LANGUAGE_FALLBACK
    admin_api_key: str | None = None
    cors_allow_origins: tuple[str, ...] = ()


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUE_VALUES


def _env_list(name: str) -> tuple[str, ...]:
    raw = os.environ.get(name, "")
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def get_alpinebits_settings() -> AlpineBitsSettings:
    """Load AlpineBits settings from the environment."""
    return AlpineBitsSettings(
        username=os.environ.get("ALPINEBITS_USERNAME") or None,
        password=os.environ.get("ALPINEBITS_PASSWORD") or None,
        require_client_id=_env_flag("ALPINEBITS_REQUIRE_CLIENT_ID"),
    )


def get_app_settings() -> AppSettings:
    """Load application settings from the environment."""
    default_language = (
        os.environ.get("DEFAULT_LANGUAGE", "").strip().lower() or DEFAULT_LANGUAGE_FALLBACK
    )
    return AppSettings(
        default_language=default_language,
        admin_api_key=os.environ.get("ADMIN_API_KEY") or None,
        cors_allow_origins=_env_list("CORS_ALLOW_ORIGINS"),
    )
