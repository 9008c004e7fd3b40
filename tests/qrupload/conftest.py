"""Shared pytest fixtures for qrupload tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Add src to sys.path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path.resolve()) not in sys.path:
    sys.path.insert(0, str(src_path.resolve()))

import pytest

from qrupload.models.config import Config
from tests.qrupload.mocks import MockBlobStorage


@pytest.fixture
def config() -> Config:
    """Default config with a pinned port so env does not leak in."""
    return Config.model_validate({"server": {"port": 3000}})


@pytest.fixture
def mock_storage() -> MockBlobStorage:
    return MockBlobStorage()
