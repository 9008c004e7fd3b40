"""Mock implementations for testing."""

from tests.qrupload.mocks.storage import MockBlobStorage

__all__ = ["MockBlobStorage"]
