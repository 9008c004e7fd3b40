"""CLI entrypoint for the qrupload service."""

from __future__ import annotations

import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import fire  # type: ignore[import-untyped]
import uvicorn

from qrupload.api import create_app
from qrupload.config import ConfigError, load_config
from qrupload.logging_setup import configure_logging


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for CLI."""
    configure_logging(log_level=level)


class QRUpload:
    """qrupload CLI - QR code rendering with signed blob links."""

    def run(
        self,
        config: str | None = None,
        host: str | None = None,
        port: int | None = None,
        log_level: str = "INFO",
    ) -> None:
        """Run the HTTP service.

        Args:
            config: Optional path to YAML config file
            host: Override server.host
            port: Override server.port (default: $PORT or 3000)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        setup_logging(log_level)

        try:
            cfg = load_config(Path(config) if config else None)
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)

        if host is not None:
            cfg.server.host = host
        if port is not None:
            cfg.server.port = int(port)

        app = create_app(cfg)
        uvicorn.run(
            app,
            host=cfg.server.host,
            port=cfg.server.port,
            log_level=log_level.lower(),
            log_config=None,
            access_log=False,
        )

    def validate(self, config: str) -> None:
        """Validate config file without running.

        Args:
            config: Path to YAML config file
        """
        config_path = Path(config)

        try:
            cfg = load_config(config_path)
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)

        print(f"✓ Config valid: {config_path}")
        print(f"  Server: {cfg.server.host}:{cfg.server.port}")
        print(f"  CORS origins: {cfg.server.cors_origins}")
        print(f"  Storage backend: {cfg.storage.backend}")
        print(f"  Key prefix: {cfg.storage.key_prefix}")
        print(f"  QR error correction: {cfg.qr.error_correction}")
        print(f"  Signed URL TTL (s): {cfg.signing.ttl_s}")


def main() -> None:
    """Main CLI entrypoint."""
    # Strip --help/-h when it's the only arg so Fire shows its commands list
    if len(sys.argv) == 2 and sys.argv[1] in ("--help", "-h"):
        sys.argv.pop()
    fire.Fire(QRUpload)


if __name__ == "__main__":
    main()
