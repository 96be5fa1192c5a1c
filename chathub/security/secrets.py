"""Loading of signing secrets without leaking their values into settings or logs."""
from __future__ import annotations

import os
from typing import Final, cast

__all__ = ["MissingSecretError", "require_secret", "is_placeholder", "signing_key"]

SIGNING_KEY_ENV: Final[str] = "HUB_SIGNING_KEY"


class MissingSecretError(RuntimeError):
    """Raised when a required secret environment variable is not set."""


_PLACEHOLDER_VALUES: Final[set[str]] = {
    "changeme",
    "change-me",
    "placeholder",
    "example",
    "secret",
    "your-key-here",
}


def is_placeholder(value: str | None) -> bool:
    if not value:
        return True
    normalized = value.strip().lower()
    return not normalized or normalized in _PLACEHOLDER_VALUES


def require_secret(name: str) -> str:
    """Return a trimmed secret value or raise :class:`MissingSecretError`."""

    value = os.getenv(name)
    if is_placeholder(value):
        raise MissingSecretError(f"Environment variable {name} is required and must not use placeholder defaults")
    return cast(str, value).strip()


def signing_key() -> str:
    """Key used to sign negotiation access tokens.

    Read on every call so a rotated key is picked up without a restart.
    """

    return require_secret(SIGNING_KEY_ENV)
