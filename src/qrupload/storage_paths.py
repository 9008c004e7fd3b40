"""Helpers for building and checking object keys."""

from __future__ import annotations

import uuid
from pathlib import PurePosixPath

QR_KEY_SUFFIX = ".png"


def normalize_blob_key(key: str) -> str:
    """Return `key` as a clean relative POSIX key.

    Raises:
        ValueError: If the key is empty, absolute, or escapes its prefix.
    """
    cleaned = str(key).lstrip("/")
    if not cleaned or "\\" in cleaned:
        raise ValueError(f"Invalid blob key: {key!r}")
    # PurePosixPath collapses "//" and "." so segments are checked on the raw string
    for part in cleaned.split("/"):
        if part in ("", ".", ".."):
            raise ValueError(f"Blob key contains invalid segment: {key!r}")
    return str(PurePosixPath(cleaned))


def build_qr_key(prefix: str) -> str:
    """Build a fresh key under `prefix`, e.g. `qr_codes/<uuid4>.png`."""
    return normalize_blob_key(f"{prefix}{uuid.uuid4()}{QR_KEY_SUFFIX}")
