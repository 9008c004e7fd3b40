"""Tests for object key helpers."""

from __future__ import annotations

import uuid

import pytest

from qrupload.storage_paths import build_qr_key, normalize_blob_key


def test_build_qr_key_uses_prefix_uuid_and_png_suffix() -> None:
    """Keys look like `qr_codes/<uuid4>.png`."""
    # When: Building a key
    key = build_qr_key("qr_codes/")

    # Then: Prefix, uuid4 stem, and suffix are present
    assert key.startswith("qr_codes/")
    assert key.endswith(".png")
    stem = key.removeprefix("qr_codes/").removesuffix(".png")
    assert uuid.UUID(stem).version == 4


def test_build_qr_key_is_fresh_each_call() -> None:
    """Two calls never share a key."""
    assert build_qr_key("qr_codes/") != build_qr_key("qr_codes/")


@pytest.mark.parametrize("bad_key", ["", "/", "a/../b.png", "a\\b.png", "a//b.png", "./a.png"])
def test_normalize_blob_key_rejects_unsafe_keys(bad_key: str) -> None:
    """Empty, traversal, and backslash keys are rejected."""
    with pytest.raises(ValueError):
        normalize_blob_key(bad_key)


def test_normalize_blob_key_strips_leading_slash() -> None:
    assert normalize_blob_key("/qr_codes/a.png") == "qr_codes/a.png"


@pytest.mark.parametrize("bad_key", ["qr_codes//a.png", "qr_codes/./a.png", "qr_codes/a.png/"])
def test_normalize_blob_key_does_not_rewrite_odd_segments(bad_key: str) -> None:
    """Doubled slashes and dot segments are rejected rather than collapsed."""
    with pytest.raises(ValueError, match="invalid segment"):
        normalize_blob_key(bad_key)
