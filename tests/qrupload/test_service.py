"""Tests for the QR upload pipeline."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from qrupload.errors import RenderError, SigningError, UploadError
from qrupload.models.config import Config
from qrupload.service import QRCodeService
from tests.qrupload.mocks import MockBlobStorage

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.mark.asyncio
async def test_generate_uploads_png_and_returns_signed_url(
    config: Config, mock_storage: MockBlobStorage
) -> None:
    """Happy path stores one PNG and returns its signed URL."""
    # Given: A service backed by mock storage
    service = QRCodeService(config, mock_storage)

    # When: Generating a QR code for a URL
    result = await service.generate("https://example.com")

    # Then: One PNG object is stored under qr_codes/ with image/png content type
    assert list(mock_storage.objects) == [result.blob_key]
    assert result.blob_key.startswith("qr_codes/")
    assert result.blob_key.endswith(".png")
    assert mock_storage.objects[result.blob_key].startswith(PNG_SIGNATURE)
    assert mock_storage.content_types[result.blob_key] == "image/png"

    # Then: The URL points at the object and carries a query string
    path, _, query = result.url.partition("?")
    assert path.endswith(result.blob_key)
    assert query


@pytest.mark.asyncio
async def test_identical_inputs_get_distinct_keys(
    config: Config, mock_storage: MockBlobStorage
) -> None:
    """No deduplication: the same URL twice yields two objects."""
    # Given: A service
    service = QRCodeService(config, mock_storage)

    # When: Generating twice with the same input
    first = await service.generate("https://example.com")
    second = await service.generate("https://example.com")

    # Then: Keys and URLs differ and both objects exist
    assert first.blob_key != second.blob_key
    assert first.url != second.url
    assert len(mock_storage.objects) == 2


@pytest.mark.asyncio
async def test_signing_window_uses_configured_ttl(mock_storage: MockBlobStorage) -> None:
    """Expiry is issue time plus signing.ttl_s."""
    # Given: A config with a 24 hour TTL and a fixed clock
    config = Config.model_validate({"server": {"port": 3000}, "signing": {"ttl_s": 86400}})
    service = QRCodeService(config, mock_storage)
    now = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)

    # When: Generating
    result = await service.generate("https://example.com", now=now)

    # Then: The storage was asked for a 24 hour window starting now
    assert mock_storage.sign_calls == [(result.blob_key, 86400, now)]
    assert result.expires_at - now == timedelta(hours=24)


@pytest.mark.asyncio
async def test_render_failure_is_tagged_and_skips_upload(
    config: Config, mock_storage: MockBlobStorage
) -> None:
    """Oversized input fails in the render stage before touching storage."""
    # Given: A service
    service = QRCodeService(config, mock_storage)

    # When: Generating with data beyond QR capacity
    with pytest.raises(RenderError) as exc_info:
        await service.generate("x" * 5000)

    # Then: Error is tagged render and nothing was stored
    assert exc_info.value.stage == "render"
    assert exc_info.value.blob_key is None
    assert mock_storage.objects == {}


@pytest.mark.asyncio
async def test_upload_failure_is_tagged_and_skips_signing(config: Config) -> None:
    """Upload failures surface as UploadError carrying the key."""
    # Given: Storage that fails uploads
    storage = MockBlobStorage(fail_upload=True)
    service = QRCodeService(config, storage)

    # When: Generating
    with pytest.raises(UploadError) as exc_info:
        await service.generate("https://example.com")

    # Then: Stage and key are recorded and signing never ran
    assert exc_info.value.stage == "upload"
    assert exc_info.value.blob_key is not None
    assert exc_info.value.blob_key.startswith("qr_codes/")
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert storage.sign_calls == []


@pytest.mark.asyncio
async def test_signing_failure_leaves_uploaded_object(config: Config) -> None:
    """A signing failure after upload leaves the object in storage."""
    # Given: Storage that uploads but fails to sign
    storage = MockBlobStorage(fail_sign=True)
    service = QRCodeService(config, storage)

    # When: Generating
    with pytest.raises(SigningError) as exc_info:
        await service.generate("https://example.com")

    # Then: The error names the orphaned object
    assert exc_info.value.stage == "sign"
    assert exc_info.value.blob_key in storage.objects


@pytest.mark.asyncio
async def test_custom_key_prefix_is_used(mock_storage: MockBlobStorage) -> None:
    """storage.key_prefix controls the virtual folder."""
    # Given: A custom prefix without trailing slash
    config = Config.model_validate({"server": {"port": 3000}, "storage": {"key_prefix": "codes"}})
    service = QRCodeService(config, mock_storage)

    # When: Generating
    result = await service.generate("https://example.com")

    # Then: Key lives under the normalized prefix
    assert result.blob_key.startswith("codes/")
