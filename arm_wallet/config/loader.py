"""
ARM Wallet TOML Configuration Loader

Loads arm-wallet.toml with environment variable overrides.

Environment variable mapping:
    [keys] source            → ARM_KEY_SOURCE
    [session] auth_timeout   → ARM_AUTH_TIMEOUT
    [scan] max_workers       → ARM_SCAN_WORKERS
    [scan] bulletin_path     → ARM_BULLETIN_PATH
    [vault] keystore_path    → ARM_KEYSTORE_PATH
    [vault] kdf_iterations   → ARM_KDF_ITERATIONS
    [logging] level          → ARM_LOG_LEVEL

Passwords never come from TOML.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from .. import constants
from ..exceptions import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)

KEY_SOURCES = ("stored_seed", "derived_signature")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class KeysConfig:
    """[keys] section."""
    source: str = "stored_seed"
    scheme_version: str = constants.KEY_SCHEME_VERSION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeysConfig":
        return cls(
            source=data.get("source", "stored_seed"),
            scheme_version=data.get("scheme_version", constants.KEY_SCHEME_VERSION),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("ARM_KEY_SOURCE"):
            self.source = v

    def validate(self) -> None:
        if self.source not in KEY_SOURCES:
            raise ConfigurationError(f"Invalid key source: {self.source}")
        if self.scheme_version != constants.KEY_SCHEME_VERSION:
            raise ConfigurationError(
                f"Unsupported key scheme {self.scheme_version}, "
                f"this wallet implements {constants.KEY_SCHEME_VERSION}"
            )


@dataclass
class SessionConfig:
    """[session] section."""
    auth_timeout: float = constants.AUTH_TIMEOUT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        return cls(auth_timeout=float(data.get("auth_timeout", constants.AUTH_TIMEOUT)))

    def apply_env(self) -> None:
        if v := os.environ.get("ARM_AUTH_TIMEOUT"):
            self.auth_timeout = float(v)

    def validate(self) -> None:
        if self.auth_timeout <= 0:
            raise ConfigurationError("auth_timeout must be > 0")


@dataclass
class ScanConfig:
    """[scan] section."""
    max_workers: int = constants.SCAN_MAX_WORKERS
    bulletin_path: str = str(constants.ARM_BULLETIN_PATH)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanConfig":
        return cls(
            max_workers=int(data.get("max_workers", constants.SCAN_MAX_WORKERS)),
            bulletin_path=data.get("bulletin_path", str(constants.ARM_BULLETIN_PATH)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("ARM_SCAN_WORKERS"):
            self.max_workers = int(v)
        if v := os.environ.get("ARM_BULLETIN_PATH"):
            self.bulletin_path = v

    def validate(self) -> None:
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be >= 1")


@dataclass
class VaultConfig:
    """[vault] section."""
    keystore_path: str = str(constants.ARM_KEYSTORE_PATH)
    kdf_iterations: int = constants.KEYSTORE_KDF_ITERATIONS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VaultConfig":
        return cls(
            keystore_path=data.get("keystore_path", str(constants.ARM_KEYSTORE_PATH)),
            kdf_iterations=int(data.get("kdf_iterations", constants.KEYSTORE_KDF_ITERATIONS)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("ARM_KEYSTORE_PATH"):
            self.keystore_path = v
        if v := os.environ.get("ARM_KDF_ITERATIONS"):
            self.kdf_iterations = int(v)

    def validate(self) -> None:
        if self.kdf_iterations < 1:
            raise ConfigurationError("kdf_iterations must be >= 1")


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = str(constants.LOG_LEVEL)
    file_output: bool = bool(constants.LOG_FILE_OUTPUT)
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=str(data.get("level", constants.LOG_LEVEL)).upper(),
            file_output=bool(data.get("file_output", bool(constants.LOG_FILE_OUTPUT))),
            log_file=data.get("log_file"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("ARM_LOG_LEVEL"):
            self.level = v.upper()

    def validate(self) -> None:
        if self.level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.level}")


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass
class WalletConfig:
    """Complete wallet configuration."""
    keys: KeysConfig = field(default_factory=KeysConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    vault: VaultConfig = field(default_factory=VaultConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WalletConfig":
        return cls(
            keys=KeysConfig.from_dict(data.get("keys", {})),
            session=SessionConfig.from_dict(data.get("session", {})),
            scan=ScanConfig.from_dict(data.get("scan", {})),
            vault=VaultConfig.from_dict(data.get("vault", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "WalletConfig":
        """
        Load configuration from a TOML file. A missing file yields defaults.

        Raises:
            ConfigurationError: If the file is not valid TOML or a value is invalid
        """
        path = Path(config_path).expanduser()
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
        else:
            try:
                with open(path, "rb") as f:
                    raw = tomli.load(f)
                cfg = cls.from_dict(raw)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {path}: {e}") from None
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid value in {path}: {e}") from None

        try:
            cfg.apply_env()
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment override: {e}") from None
        cfg.validate()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.keys.apply_env()
        self.session.apply_env()
        self.scan.apply_env()
        self.vault.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """
        Raises:
            ConfigurationError: on invalid config
        """
        self.keys.validate()
        self.session.validate()
        self.scan.validate()
        self.vault.validate()
        self.logging.validate()
        return True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[str] = None) -> WalletConfig:
    """
    Load wallet configuration.

    Resolution order:
        1. Explicit *path* argument
        2. ARM_WALLET_CONFIG env var
        3. ./arm-wallet.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("ARM_WALLET_CONFIG", str(constants.ARM_WALLET_CONFIG))

    return WalletConfig.from_file(path)
