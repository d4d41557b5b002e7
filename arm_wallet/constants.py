"""
ARM Wallet Constants

This module consolidates the protocol constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

WALLET_DEFAULTS = {
    'ARM_WALLET_CONFIG':               'arm-wallet.toml',
    'ARM_KEYSTORE_PATH':               '~/.arm-wallet/keystore.json',
    'ARM_BULLETIN_PATH':               '~/.arm-wallet/bulletin.jsonl',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW ARE WIRE CONTRACTS. CHANGING ANY OF THEM PRODUCES KEY
# HIERARCHIES AND USER KEYS THAT OTHER WALLETS CANNOT INTEROPERATE WITH.

# ==================================================================================
# KEY HIERARCHY
# ==================================================================================
KEY_SCHEME_VERSION = 'v1'
SEED_SIZE = 32
SCALAR_SIZE = 32
COMPRESSED_PUBLIC_KEY_SIZE = 33
COMPACT_SIGNATURE_SIZE = 64

# secp256k1 domain parameters
SECP256K1_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# PRF domain separators (seed-based derivation)
DOMAIN_IDENTITY = 'ANOMA_IDENTITY_KEY'
DOMAIN_NULLIFIER = 'ANOMA_NULLIFIER_KEY'
DOMAIN_STATIC_ENCRYPTION = 'ANOMA_STATIC_ENCRYPTION_KEY'
DOMAIN_STATIC_DISCOVERY = 'ANOMA_STATIC_DISCOVERY_KEY'
DOMAIN_NULLIFIER_COMMITMENT = 'ANOMA_NULLIFIER_COMMITMENT'

# Challenge messages for the derived-signature strategy, one per PRF branch
CHALLENGE_NULLIFIER = 'ANOMA::DERIVE_NULLIFIER_KEY_V1'
CHALLENGE_STATIC_ENCRYPTION = 'ANOMA::DERIVE_STATIC_ENCRYPTION_KEY_V1'
CHALLENGE_STATIC_DISCOVERY = 'ANOMA::DERIVE_STATIC_DISCOVERY_KEY_V1'
CHALLENGE_IDENTITY = 'ANOMA::VERIFY_IDENTITY_KEY_V1'


# ==================================================================================
# WIRE FORMATS
# ==================================================================================
ENDIAN = 'little'
LENGTH_PREFIX_SIZE = 4
USER_KEY_FIELD_COUNT = 5

AEAD_KEY_SIZE = 32
AEAD_NONCE_SIZE = 12  # 96-bit GCM nonce
AEAD_TAG_SIZE = 16

RESOURCE_NONCE_SIZE = 32
DISCOVERY_HINT_PREFIX = b'ARM-DISCOVERY-V1'
DISCOVERY_HINT_TAG_SIZE = 16


# ==================================================================================
# SESSION AND SCAN DEFAULTS
# ==================================================================================
AUTH_TIMEOUT = 60.0  # seconds to wait on vault or signer approval
CHALLENGE_SIZE = 32
SCAN_MAX_WORKERS = 1
KEYSTORE_KDF_ITERATIONS = 100_000
KEYSTORE_VERSION = 1


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
DEFAULTS = WALLET_DEFAULTS | LOGGER_DEFAULTS
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
