"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from qrupload.config import (
    ConfigError,
    ConfigErrorCode,
    load_config,
    load_config_from_dict,
)
from qrupload.plugins.storage import STORAGE_REGISTRY, create_storage
from qrupload.plugins.storage.local import LocalBlobStorage


def _write(path: Path, data: object) -> Path:
    path.write_text(yaml.safe_dump(data) if not isinstance(data, str) else data)
    return path


def test_defaults_match_original_service(monkeypatch: pytest.MonkeyPatch) -> None:
    """Without a file, defaults mirror the env-driven service."""
    # Given: No PORT override
    monkeypatch.delenv("PORT", raising=False)

    # When: Loading with no path
    cfg = load_config(None)

    # Then: Azure backend, port 3000, qr_codes/ prefix, localhost CORS, 24h signing
    assert cfg.server.port == 3000
    assert cfg.server.cors_origins == ["http://localhost:3000"]
    assert cfg.server.cors_allow_headers == [
        "Origin",
        "X-Requested-With",
        "Content-Type",
        "Accept",
    ]
    assert cfg.storage.backend == "azure"
    assert cfg.storage.key_prefix == "qr_codes/"
    assert cfg.storage.azure.max_block_size == 4 * 1024 * 1024
    assert cfg.storage.azure.max_concurrency == 20
    assert cfg.signing.ttl_s == 86400


def test_port_comes_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8123")

    assert load_config(None).server.port == 8123


def test_file_port_wins_over_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "8123")
    path = _write(tmp_path / "config.yaml", {"server": {"port": 9000}})

    assert load_config(path).server.port == 9000


@pytest.mark.parametrize("port", ["abc", "0", "70000"])
def test_invalid_port_env_is_config_error(monkeypatch: pytest.MonkeyPatch, port: str) -> None:
    """A bad $PORT is reported as a validation failure, not a raw exception."""
    # Given: PORT set to a value that is not a usable port
    monkeypatch.setenv("PORT", port)

    # When / Then: Loading fails with a stable code naming the field
    with pytest.raises(ConfigError) as exc_info:
        load_config(None)
    assert exc_info.value.code == ConfigErrorCode.VALIDATION_FAILED
    assert "server -> port" in str(exc_info.value)


def test_missing_azure_env_vars_do_not_fail_loading(monkeypatch: pytest.MonkeyPatch) -> None:
    """Azure credentials are resolved when storage is first used, not at load time."""
    monkeypatch.delenv("AZURE_STORAGE_CONNECTION_STRING", raising=False)
    monkeypatch.delenv("CONTAINER_NAME", raising=False)

    azure = load_config(None).storage.azure

    assert azure.get_connection_string() is None
    assert azure.get_container() is None


def test_azure_settings_resolve_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Connection string and container come from the named env vars."""
    monkeypatch.setenv("AZURE_STORAGE_CONNECTION_STRING", "conn")
    monkeypatch.setenv("CONTAINER_NAME", "images")

    azure = load_config(None).storage.azure

    assert azure.get_connection_string() == "conn"
    assert azure.get_container() == "images"


def test_load_yaml_file(tmp_path: Path) -> None:
    """YAML values override defaults."""
    # Given: A config file selecting local storage
    path = _write(
        tmp_path / "config.yaml",
        {
            "server": {"port": 9000, "cors_origins": ["https://app.example"]},
            "storage": {"backend": "LOCAL", "key_prefix": "/codes/"},
            "qr": {"error_correction": "h"},
            "signing": {"ttl_s": 3600},
        },
    )

    # When: Loading it
    cfg = load_config(path)

    # Then: Values are applied and normalized
    assert cfg.server.port == 9000
    assert cfg.server.cors_origins == ["https://app.example"]
    assert cfg.storage.backend == "local"
    assert cfg.storage.key_prefix == "codes/"
    assert cfg.qr.error_correction == "H"
    assert cfg.signing.ttl_s == 3600


@pytest.mark.parametrize(
    ("content", "code"),
    [
        ("", ConfigErrorCode.EMPTY_FILE),
        ("storage: [unclosed", ConfigErrorCode.YAML_INVALID),
        ("- just\n- a list\n", ConfigErrorCode.ROOT_NOT_MAPPING),
        ("signing:\n  ttl_s: -1\n", ConfigErrorCode.VALIDATION_FAILED),
        ("storage:\n  backend: s3\n", ConfigErrorCode.STORAGE_BACKEND_INVALID),
        ("version: 2\n", ConfigErrorCode.VALIDATION_FAILED),
    ],
)
def test_load_config_errors(tmp_path: Path, content: str, code: ConfigErrorCode) -> None:
    """Each failure mode maps to a stable error code."""
    path = _write(tmp_path / "config.yaml", content)

    with pytest.raises(ConfigError) as exc_info:
        load_config(path)

    assert exc_info.value.code == code


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as exc_info:
        load_config(tmp_path / "missing.yaml")

    assert exc_info.value.code == ConfigErrorCode.FILE_NOT_FOUND


def test_validation_error_message_names_field() -> None:
    with pytest.raises(ConfigError) as exc_info:
        load_config_from_dict({"qr": {"box_size": 0}})

    assert "qr -> box_size" in str(exc_info.value)


@pytest.mark.parametrize("prefix", ["", "/", "a/../b"])
def test_invalid_key_prefix_rejected(prefix: str) -> None:
    with pytest.raises(ConfigError):
        load_config_from_dict({"storage": {"key_prefix": prefix}})


def test_builtin_backends_registered_and_created(tmp_path: Path) -> None:
    """Both built-in backends are discoverable; create_storage builds the chosen one."""
    # Given: A config selecting local storage
    cfg = load_config_from_dict({"storage": {"backend": "local", "local": {"root": str(tmp_path)}}})

    # When: Creating storage
    storage = create_storage(cfg.storage)

    # Then: Registry holds both backends and the local one was built
    assert {"azure", "local"} <= set(STORAGE_REGISTRY)
    assert isinstance(storage, LocalBlobStorage)


def test_create_storage_unknown_backend() -> None:
    cfg = load_config_from_dict({})
    cfg.storage.backend = "ftp"

    with pytest.raises(RuntimeError, match="Unknown storage backend"):
        create_storage(cfg.storage)
