"""Runtime configuration for CookSchool."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DB_PATH = "cookschool.db"
DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_SIGNING_KEY = "cookschool-development-key"
DEFAULT_PAYMENT_METHOD = "bkash"
DEFAULT_PAYMENT_ACCOUNT = "01XXXXXXXXX"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


class ConfigError(Exception):
    """Raised when configuration is invalid."""


@dataclass
class Settings:
    """Application settings.

    Attributes:
        db_path: SQLite database file. Use ":memory:" for an in-memory DB.
        upload_dir: Root directory for uploaded files (payment proofs, images).
        signing_key: Secret used to sign issued certificates.
        payment_method: Payment method shown in payment instructions.
        payment_account: Account number students pay into.
        host: Bind address for the API server.
        port: Bind port for the API server.
        log_dir: Directory for log files (None uses the logging default).
        log_level: Log level name (None uses the logging default).
    """

    db_path: str = DEFAULT_DB_PATH
    upload_dir: Path = Path(DEFAULT_UPLOAD_DIR)
    signing_key: str = DEFAULT_SIGNING_KEY
    payment_method: str = DEFAULT_PAYMENT_METHOD
    payment_account: str = DEFAULT_PAYMENT_ACCOUNT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_dir: str | None = None
    log_level: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Create settings from COOKSCHOOL_* environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Parsed settings object.

        Raises:
            ConfigError: If a value cannot be parsed.
        """
        env = os.environ if environ is None else environ

        port_raw = env.get("COOKSCHOOL_PORT", str(DEFAULT_PORT))
        try:
            port = int(port_raw)
        except ValueError as e:
            raise ConfigError(f"COOKSCHOOL_PORT must be an integer, got {port_raw!r}") from e
        if not 0 < port < 65536:
            raise ConfigError(f"COOKSCHOOL_PORT out of range: {port}")

        signing_key = env.get("COOKSCHOOL_SIGNING_KEY", DEFAULT_SIGNING_KEY)
        if not signing_key:
            raise ConfigError("COOKSCHOOL_SIGNING_KEY must not be empty")

        return cls(
            db_path=env.get("COOKSCHOOL_DB_PATH", DEFAULT_DB_PATH),
            upload_dir=Path(env.get("COOKSCHOOL_UPLOAD_DIR", DEFAULT_UPLOAD_DIR)),
            signing_key=signing_key,
            payment_method=env.get("COOKSCHOOL_PAYMENT_METHOD", DEFAULT_PAYMENT_METHOD),
            payment_account=env.get("COOKSCHOOL_PAYMENT_ACCOUNT", DEFAULT_PAYMENT_ACCOUNT),
            host=env.get("COOKSCHOOL_HOST", DEFAULT_HOST),
            port=port,
            log_dir=env.get("COOKSCHOOL_LOG_DIR"),
            log_level=env.get("COOKSCHOOL_LOG_LEVEL"),
        )
