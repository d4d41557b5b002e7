"""
ARM Wallet Key Hierarchy

Derives the four per-account key classes from one 32-byte master seed:

    identity          = PRF(S, IDENTITY)             signing key, public half in the User Key
    nullifier nk      = PRF(S, NULLIFIER)            spend authority, never leaves the device
    cnk               = PRF(nk, NULLIFIER_COMMITMENT) public addressing target
    static encryption = PRF(S, STATIC_ENCRYPTION)    DH counterpart for resource payloads
    static discovery  = PRF(S, STATIC_DISCOVERY)     DH counterpart for discovery hints

Each 32-byte material is used directly as a secp256k1 scalar.
"""

import secrets
from dataclasses import dataclass

from .constants import SEED_SIZE, SCALAR_SIZE
from .crypto.hashing import DomainLabel, prf
from .crypto.keys import KeyPair
from .exceptions import InvalidSeedLength
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class NullifierKeyPair:
    """Nullifier key and its public commitment."""
    nk: bytes
    cnk: bytes

    def __repr__(self) -> str:
        return f"NullifierKeyPair(cnk=0x{self.cnk.hex()[:16]}..., nk=<redacted>)"


@dataclass(frozen=True)
class StaticKeySet:
    """All long-lived keys of one account."""
    identity: KeyPair
    nullifier: NullifierKeyPair
    static_encryption: KeyPair
    static_discovery: KeyPair

    def fingerprint(self) -> str:
        """Short id derived from the identity public key."""
        return f"0x{self.identity.public_key.hex()[2:18]}"


def _check_seed(seed: bytes) -> bytes:
    if not isinstance(seed, (bytes, bytearray)) or len(seed) != SEED_SIZE:
        length = len(seed) if isinstance(seed, (bytes, bytearray)) else type(seed).__name__
        raise InvalidSeedLength(f"Master seed must be exactly {SEED_SIZE} bytes, got {length}")
    return bytes(seed)


def generate_master_seed() -> bytes:
    """32 bytes from the OS CSPRNG. Called once at signup."""
    return secrets.token_bytes(SEED_SIZE)


def commit_nullifier_key(nk: bytes) -> bytes:
    """
    Nullifier key commitment, cnk = PRF(nk, NULLIFIER_COMMITMENT).

    This is the single commitment formula for every key source.
    """
    return prf(nk, DomainLabel.NULLIFIER_COMMITMENT)


def keys_from_materials(
    identity: bytes,
    nk: bytes,
    static_encryption: bytes,
    static_discovery: bytes,
) -> StaticKeySet:
    """
    Build a StaticKeySet from four already-derived 32-byte materials.

    Raises:
        InvalidSeedLength: If nk is not 32 bytes
        InvalidKeyError: If any key material is not a valid secp256k1 scalar
    """
    if len(nk) != SCALAR_SIZE:
        raise InvalidSeedLength(f"Nullifier key must be {SCALAR_SIZE} bytes, got {len(nk)}")
    return StaticKeySet(
        identity=KeyPair.from_private_bytes(identity),
        nullifier=NullifierKeyPair(nk=bytes(nk), cnk=commit_nullifier_key(nk)),
        static_encryption=KeyPair.from_private_bytes(static_encryption),
        static_discovery=KeyPair.from_private_bytes(static_discovery),
    )


def derive_static_keys(seed: bytes) -> StaticKeySet:
    """
    Derive the full static key set from a master seed.

    Two calls with the same seed return byte-identical key sets.

    Args:
        seed: 32-byte master seed

    Returns:
        StaticKeySet

    Raises:
        InvalidSeedLength: If the seed is not exactly 32 bytes
    """
    seed = _check_seed(seed)
    keys = keys_from_materials(
        identity=prf(seed, DomainLabel.IDENTITY),
        nk=prf(seed, DomainLabel.NULLIFIER),
        static_encryption=prf(seed, DomainLabel.STATIC_ENCRYPTION),
        static_discovery=prf(seed, DomainLabel.STATIC_DISCOVERY),
    )
    logger.debug("Derived static key set %s", keys.fingerprint())
    return keys
