"""Filename helpers for multipart uploads."""

from __future__ import annotations

import re

DEFAULT_FILENAME = "video.webm"

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(name: str | None, *, extension: str = ".webm") -> str:
    """Return a filesystem-safe filename derived from a user-supplied name."""
    if not name:
        return DEFAULT_FILENAME
    cleaned = _ILLEGAL_CHARS.sub("", name)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip().strip(".")
    if not cleaned:
        return DEFAULT_FILENAME
    if not cleaned.lower().endswith(extension):
        cleaned = f"{cleaned}{extension}"
    return cleaned
