"""
ARM Wallet Crypto Hashing Module

Provides the hash functions used by the key hierarchy:
- sha256: message digests for signatures and signature-to-scalar hashing
- hmac_sha256: keyed hash backing both the PRF and the KDF
- prf: domain-separated pseudo-random function over a 32-byte secret
"""

import hashlib
import hmac
from enum import Enum
from typing import Union

from ..constants import (
    SEED_SIZE,
    DOMAIN_IDENTITY,
    DOMAIN_NULLIFIER,
    DOMAIN_STATIC_ENCRYPTION,
    DOMAIN_STATIC_DISCOVERY,
    DOMAIN_NULLIFIER_COMMITMENT,
)
from ..exceptions import InvalidDomainLabel, InvalidSeedLength


class DomainLabel(str, Enum):
    """
    Closed set of PRF domain separators (key scheme v1).

    Members are mutually exclusive: no label is a prefix of another, so
    outputs for distinct labels are independent.
    """
    IDENTITY = DOMAIN_IDENTITY
    NULLIFIER = DOMAIN_NULLIFIER
    STATIC_ENCRYPTION = DOMAIN_STATIC_ENCRYPTION
    STATIC_DISCOVERY = DOMAIN_STATIC_DISCOVERY
    NULLIFIER_COMMITMENT = DOMAIN_NULLIFIER_COMMITMENT


def sha256(data: Union[bytes, str]) -> bytes:
    """
    Compute SHA-256 hash.

    Args:
        data: Input bytes, or a text string which is UTF-8 encoded

    Returns:
        32-byte hash
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).digest()


def hmac_sha256(key: bytes, message: bytes) -> bytes:
    """HMAC-SHA256 of message under key."""
    return hmac.new(key, message, hashlib.sha256).digest()


def _resolve_label(label: Union[DomainLabel, str]) -> DomainLabel:
    if isinstance(label, DomainLabel):
        return label
    try:
        return DomainLabel(label)
    except ValueError:
        raise InvalidDomainLabel(f"Unknown PRF domain label: {label!r}") from None


def prf(secret: bytes, label: Union[DomainLabel, str]) -> bytes:
    """
    Domain-separated PRF: HMAC-SHA256(key=secret, msg=label).

    Args:
        secret: Exactly 32 bytes of secret material
        label: Member of DomainLabel (or its wire string)

    Returns:
        32 bytes of derived material

    Raises:
        InvalidSeedLength: If the secret is not 32 bytes
        InvalidDomainLabel: If the label is not in the fixed set
    """
    if not isinstance(secret, (bytes, bytearray)) or len(secret) != SEED_SIZE:
        length = len(secret) if isinstance(secret, (bytes, bytearray)) else type(secret).__name__
        raise InvalidSeedLength(f"PRF secret must be {SEED_SIZE} bytes, got {length}")

    domain = _resolve_label(label)
    return hmac_sha256(bytes(secret), domain.value.encode('ascii'))
