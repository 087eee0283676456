"""
Environment helpers shared by the settings module and management commands.

Values may be supplied base64-obfuscated with a ``b64:`` prefix so that
credentials pasted into hosting dashboards are not readable at a glance.
This is obfuscation only; it is not encryption.
"""
from __future__ import annotations

import base64
import binascii
import os

OBFUSCATED_PREFIX = "b64:"


def decode_obfuscated(value: str | None) -> str:
    """Return ``value`` decoded when it carries the ``b64:`` prefix."""
    if not value:
        return ""
    if not value.startswith(OBFUSCATED_PREFIX):
        return value
    raw = value[len(OBFUSCATED_PREFIX):].strip()
    try:
        return base64.b64decode(raw + "=" * (-len(raw) % 4)).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise RuntimeError("Invalid base64 value in environment") from exc


def env_str(name: str, default: str = "") -> str:
    return decode_obfuscated(os.getenv(name, default))


def env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def env_list(name: str, default: str = "") -> list[str]:
    return [h.strip() for h in os.getenv(name, default).split(",") if h.strip()]
