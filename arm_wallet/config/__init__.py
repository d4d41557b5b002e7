"""
ARM Wallet Configuration

Loads arm-wallet.toml. Environment variables override TOML values.
"""

from .loader import (
    WalletConfig,
    KeysConfig,
    SessionConfig,
    ScanConfig,
    VaultConfig,
    LoggingConfig,
    load_config,
)

__all__ = [
    "WalletConfig",
    "KeysConfig",
    "SessionConfig",
    "ScanConfig",
    "VaultConfig",
    "LoggingConfig",
    "load_config",
]
