"""
ARM Wallet Configuration Tests

Covers:
- TOML loading of [keys], [session], [scan], [vault], [logging]
- ARM_* environment overrides
- Validation errors
- Constant wrappers from the .env layer
"""

import pytest


ENV_VARS = [
    "ARM_WALLET_CONFIG",
    "ARM_KEY_SOURCE",
    "ARM_AUTH_TIMEOUT",
    "ARM_SCAN_WORKERS",
    "ARM_BULLETIN_PATH",
    "ARM_KEYSTORE_PATH",
    "ARM_KDF_ITERATIONS",
    "ARM_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


SAMPLE = """
[keys]
source = "derived_signature"

[session]
auth_timeout = 12.5

[scan]
max_workers = 4
bulletin_path = "/tmp/board.jsonl"

[vault]
keystore_path = "/tmp/keystore.json"
kdf_iterations = 2000

[logging]
level = "debug"
"""


class TestWalletConfig:
    """Tests for arm_wallet.config.loader."""

    def test_defaults(self, tmp_path):
        from arm_wallet.config import load_config
        cfg = load_config(str(tmp_path / "missing.toml"))
        assert cfg.keys.source == "stored_seed"
        assert cfg.keys.scheme_version == "v1"
        assert cfg.session.auth_timeout == 60.0
        assert cfg.scan.max_workers == 1
        assert cfg.vault.kdf_iterations == 100_000
        assert cfg.validate()

    def test_from_toml(self, tmp_path):
        from arm_wallet.config import load_config
        path = tmp_path / "arm-wallet.toml"
        path.write_text(SAMPLE)
        cfg = load_config(str(path))
        assert cfg.keys.source == "derived_signature"
        assert cfg.session.auth_timeout == 12.5
        assert cfg.scan.max_workers == 4
        assert cfg.scan.bulletin_path == "/tmp/board.jsonl"
        assert cfg.vault.keystore_path == "/tmp/keystore.json"
        assert cfg.vault.kdf_iterations == 2000
        assert cfg.logging.level == "DEBUG"

    def test_env_overrides_toml(self, tmp_path, monkeypatch):
        from arm_wallet.config import load_config
        path = tmp_path / "arm-wallet.toml"
        path.write_text(SAMPLE)
        monkeypatch.setenv("ARM_SCAN_WORKERS", "8")
        monkeypatch.setenv("ARM_KEY_SOURCE", "stored_seed")
        monkeypatch.setenv("ARM_LOG_LEVEL", "warning")
        cfg = load_config(str(path))
        assert cfg.scan.max_workers == 8
        assert cfg.keys.source == "stored_seed"
        assert cfg.logging.level == "WARNING"

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        from arm_wallet.config import load_config
        path = tmp_path / "custom.toml"
        path.write_text(SAMPLE)
        monkeypatch.setenv("ARM_WALLET_CONFIG", str(path))
        assert load_config().scan.max_workers == 4

    def test_to_dict(self, tmp_path):
        from arm_wallet.config import load_config
        data = load_config(str(tmp_path / "missing.toml")).to_dict()
        assert set(data) == {"keys", "session", "scan", "vault", "logging"}

    @pytest.mark.parametrize("text", [
        '[keys]\nsource = "hardware"\n',
        '[keys]\nscheme_version = "v2"\n',
        '[session]\nauth_timeout = 0\n',
        '[scan]\nmax_workers = 0\n',
        '[vault]\nkdf_iterations = 0\n',
        '[logging]\nlevel = "LOUD"\n',
    ])
    def test_invalid_values(self, tmp_path, text):
        from arm_wallet.config import load_config
        from arm_wallet.exceptions import ConfigurationError
        path = tmp_path / "arm-wallet.toml"
        path.write_text(text)
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_invalid_toml(self, tmp_path):
        from arm_wallet.config import load_config
        from arm_wallet.exceptions import ConfigurationError
        path = tmp_path / "arm-wallet.toml"
        path.write_text("[keys\nsource=")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_invalid_env(self, tmp_path, monkeypatch):
        from arm_wallet.config import load_config
        from arm_wallet.exceptions import ConfigurationError
        monkeypatch.setenv("ARM_SCAN_WORKERS", "many")
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "missing.toml"))


class TestConstants:
    """Tests for the configuration wrappers in arm_wallet.constants."""

    def test_config_string_default(self):
        from arm_wallet.constants import ConfigString
        value = ConfigString("custom", "default")
        assert value == "custom"
        assert value.default() == "default"

    def test_config_bool(self):
        from arm_wallet.constants import ConfigBool
        value = ConfigBool(False, True)
        assert not value
        assert value == False  # noqa: E712
        assert value.default() is True
        assert str(value) == "False"

    @pytest.mark.parametrize("raw,expected", [
        ("True", True),
        (" false ", False),
        ("TRUE", True),
        ("yes", "yes"),
        ("", ""),
    ])
    def test_parse_bool(self, raw, expected):
        from arm_wallet.constants import parse_bool
        assert parse_bool(raw) == expected

    def test_wire_labels_pinned(self):
        from arm_wallet import constants
        assert constants.DOMAIN_NULLIFIER_COMMITMENT == "ANOMA_NULLIFIER_COMMITMENT"
        assert constants.CHALLENGE_IDENTITY == "ANOMA::VERIFY_IDENTITY_KEY_V1"
        assert constants.AEAD_NONCE_SIZE == 12
        assert constants.AEAD_TAG_SIZE == 16
