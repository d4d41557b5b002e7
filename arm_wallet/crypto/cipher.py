"""
ARM Wallet Authenticated Cipher Module

AES-256-GCM with a random 96-bit nonce.

Wire format: nonce (12 bytes) || ciphertext || tag (16 bytes)
"""

import os
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..constants import AEAD_KEY_SIZE, AEAD_NONCE_SIZE, AEAD_TAG_SIZE
from ..exceptions import AuthenticationFailure, MalformedEncoding

MIN_SEALED_SIZE = AEAD_NONCE_SIZE + AEAD_TAG_SIZE


def _check_key(key: bytes) -> None:
    if len(key) != AEAD_KEY_SIZE:
        raise ValueError(f"Cipher key must be {AEAD_KEY_SIZE} bytes, got {len(key)}")


def encrypt(key: bytes, plaintext: bytes, nonce: Optional[bytes] = None) -> bytes:
    """
    Encrypt under AES-256-GCM.

    Returns: nonce (12 bytes) || ciphertext || tag (16 bytes)
    """
    _check_key(key)
    if nonce is None:
        nonce = os.urandom(AEAD_NONCE_SIZE)
    elif len(nonce) != AEAD_NONCE_SIZE:
        raise ValueError(f"Nonce must be {AEAD_NONCE_SIZE} bytes, got {len(nonce)}")

    aes = AESGCM(bytes(key))
    return nonce + aes.encrypt(nonce, bytes(plaintext), None)


def decrypt(key: bytes, data: bytes) -> bytes:
    """
    Decrypt a message produced by encrypt().

    Raises:
        MalformedEncoding: If data is shorter than nonce + tag
        AuthenticationFailure: On tag mismatch; no plaintext is returned
    """
    _check_key(key)
    if len(data) < MIN_SEALED_SIZE:
        raise MalformedEncoding(f"Ciphertext too short: {len(data)} bytes")

    nonce = bytes(data[:AEAD_NONCE_SIZE])
    aes = AESGCM(bytes(key))
    try:
        return aes.decrypt(nonce, bytes(data[AEAD_NONCE_SIZE:]), None)
    except InvalidTag:
        raise AuthenticationFailure("AEAD tag mismatch") from None


@dataclass(frozen=True)
class EncryptedEnvelope:
    """One sealed message plus the ephemeral public key needed to open it."""
    nonce: bytes
    ciphertext: bytes
    tag: bytes
    ephemeral_public_key: bytes

    @classmethod
    def from_bytes(cls, sealed: bytes, ephemeral_public_key: bytes) -> "EncryptedEnvelope":
        if len(sealed) < MIN_SEALED_SIZE:
            raise MalformedEncoding(f"Envelope too short: {len(sealed)} bytes")
        return cls(
            nonce=bytes(sealed[:AEAD_NONCE_SIZE]),
            ciphertext=bytes(sealed[AEAD_NONCE_SIZE:-AEAD_TAG_SIZE]),
            tag=bytes(sealed[-AEAD_TAG_SIZE:]),
            ephemeral_public_key=bytes(ephemeral_public_key),
        )

    def to_bytes(self) -> bytes:
        """nonce || ciphertext || tag"""
        return self.nonce + self.ciphertext + self.tag

    def open(self, key: bytes) -> bytes:
        return decrypt(key, self.to_bytes())
