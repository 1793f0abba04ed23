"""Environment variable helpers with ``.env`` file support."""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def load_env(path: str | os.PathLike[str] = ".env") -> None:
    """Load ``KEY=VALUE`` lines from ``path`` without overriding set variables.

    A missing or unreadable file is ignored.
    """
    try:
        handle = open(path, encoding="utf-8")
    except OSError:
        return

    with handle:
        try:
            for raw in handle:
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue
                key, sep, value = line.partition("=")
                if not sep:
                    continue
                key = key.strip()
                if not key or os.environ.get(key, "") != "":
                    continue
                try:
                    os.environ[key] = value.strip()
                except ValueError:
                    continue
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error reading .env file: %s", exc)


def get_env(key: str, default: str = "") -> str:
    """Return the variable ``key``, or ``default`` when it is unset or empty."""
    value = os.environ.get(key, "")
    return value if value else default