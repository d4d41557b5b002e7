"""
ARM Wallet Crypto Keys Module

Implements secp256k1 key management. Every key in the hierarchy (identity,
static encryption, static discovery, ephemeral) is a secp256k1 scalar whose
public half travels as a 33-byte SEC1 compressed point.
"""

import secrets
from dataclasses import dataclass
from typing import Union

from eth_keys.datatypes import (
    NonRecoverableSignature as EthNonRecoverableSignature,
    PrivateKey as EthPrivateKey,
    PublicKey as EthPublicKey,
)
from eth_utils import decode_hex

from ..constants import (
    COMPACT_SIGNATURE_SIZE,
    COMPRESSED_PUBLIC_KEY_SIZE,
    SCALAR_SIZE,
    SECP256K1_N,
    SECP256K1_P,
)
from ..exceptions import InvalidKeyError, InvalidPublicKey


def decompress_point(key: bytes) -> bytes:
    """
    Decompress a SEC1 compressed secp256k1 point.

    Args:
        key: 33 bytes (0x02/0x03 prefix + 32-byte x coordinate)

    Returns:
        64 bytes x || y

    Raises:
        InvalidPublicKey: If the encoding is wrong or the point is not on the curve
    """
    if len(key) != COMPRESSED_PUBLIC_KEY_SIZE:
        raise InvalidPublicKey(
            f"Compressed public key must be {COMPRESSED_PUBLIC_KEY_SIZE} bytes, got {len(key)}"
        )
    prefix = key[0]
    if prefix not in (0x02, 0x03):
        raise InvalidPublicKey(f"Invalid compressed public key prefix: 0x{prefix:02x}")

    x = int.from_bytes(key[1:], "big")
    if x >= SECP256K1_P:
        raise InvalidPublicKey("Public key x coordinate out of field range")

    # y² = x³ + 7  (mod p)
    y_sq = (pow(x, 3, SECP256K1_P) + 7) % SECP256K1_P
    # Square root for p ≡ 3 (mod 4) reduces to modular exponentiation
    y = pow(y_sq, (SECP256K1_P + 1) // 4, SECP256K1_P)
    if pow(y, 2, SECP256K1_P) != y_sq:
        raise InvalidPublicKey("Public key is not a point on secp256k1")
    if (y % 2 == 0) != (prefix == 0x02):
        y = SECP256K1_P - y
    return x.to_bytes(32, "big") + y.to_bytes(32, "big")


class PrivateKey:
    """
    secp256k1 private key.

    Wraps eth-keys PrivateKey.
    """

    def __init__(self, key_bytes: bytes):
        """
        Initialize from raw 32-byte private key.

        Args:
            key_bytes: 32 bytes of private key data

        Raises:
            InvalidKeyError: If key bytes are not a valid scalar
        """
        key_bytes = bytes(key_bytes)
        if len(key_bytes) != SCALAR_SIZE:
            raise InvalidKeyError(f"Private key must be {SCALAR_SIZE} bytes, got {len(key_bytes)}")

        scalar = int.from_bytes(key_bytes, "big")
        if not 0 < scalar < SECP256K1_N:
            raise InvalidKeyError("Private key scalar out of range for secp256k1")

        try:
            self._key = EthPrivateKey(key_bytes)
        except Exception as e:
            raise InvalidKeyError(f"Invalid private key: {e}")

    @classmethod
    def from_hex(cls, hex_str: str) -> "PrivateKey":
        """
        Create from hex string.

        Args:
            hex_str: Hex-encoded private key (with or without 0x prefix)

        Returns:
            PrivateKey instance
        """
        return cls(decode_hex(hex_str))

    @classmethod
    def generate(cls) -> "PrivateKey":
        """
        Generate a new random private key.

        Returns:
            New PrivateKey instance
        """
        while True:
            key_bytes = secrets.token_bytes(SCALAR_SIZE)
            if 0 < int.from_bytes(key_bytes, "big") < SECP256K1_N:
                return cls(key_bytes)

    @property
    def public_key(self) -> "PublicKey":
        """The corresponding public key."""
        return PublicKey(self._key.public_key)

    def to_bytes(self) -> bytes:
        """Get raw private key bytes."""
        return self._key.to_bytes()

    def sign_msg_hash(self, msg_hash: bytes) -> bytes:
        """
        Sign a 32-byte hash with a recoverable signature.

        Returns:
            65 bytes r || s || v, as produced by Ethereum personal_sign
        """
        if len(msg_hash) != 32:
            raise ValueError(f"Message hash must be 32 bytes, got {len(msg_hash)}")
        return self._key.sign_msg_hash(msg_hash).to_bytes()

    def sign_msg_hash_compact(self, msg_hash: bytes) -> "Signature":
        """
        Sign a 32-byte hash with a compact (r || s) signature.

        Nonces are RFC 6979 deterministic, so equal inputs give equal signatures.
        """
        if len(msg_hash) != 32:
            raise ValueError(f"Message hash must be 32 bytes, got {len(msg_hash)}")
        return Signature(self._key.sign_msg_hash_non_recoverable(msg_hash))

    def __repr__(self) -> str:
        return "PrivateKey(<redacted>)"

    def __eq__(self, other) -> bool:
        if not isinstance(other, PrivateKey):
            return False
        return self._key == other._key


class PublicKey:
    """
    secp256k1 public key for verification and Diffie-Hellman.
    """

    def __init__(self, key: Union[EthPublicKey, bytes]):
        """
        Initialize public key.

        Args:
            key: eth-keys PublicKey, 64/65-byte uncompressed or 33-byte compressed key

        Raises:
            InvalidPublicKey: If the bytes do not encode a curve point
        """
        if isinstance(key, EthPublicKey):
            self._key = key
        elif isinstance(key, (bytes, bytearray)):
            key = bytes(key)
            if len(key) == 64:
                self._key = EthPublicKey(key)
            elif len(key) == 65 and key[0] == 0x04:
                self._key = EthPublicKey(key[1:])
            elif len(key) == COMPRESSED_PUBLIC_KEY_SIZE:
                self._key = EthPublicKey(decompress_point(key))
            else:
                raise InvalidPublicKey(f"Invalid public key length: {len(key)}")
        else:
            raise InvalidPublicKey(f"Invalid public key type: {type(key)}")

    def to_bytes(self, compressed: bool = False) -> bytes:
        """
        Get raw public key bytes.

        Args:
            compressed: Use compressed format (33 bytes) if True

        Returns:
            Public key bytes
        """
        if compressed:
            # SEC1 compressed format: 0x02/0x03 prefix + 32-byte x coordinate
            raw = self._key.to_bytes()  # 64 bytes: x (32) || y (32)
            prefix = bytes([0x02 if raw[-1] % 2 == 0 else 0x03])
            return prefix + raw[:32]
        return self._key.to_bytes()

    def verify_msg_hash(self, msg_hash: bytes, signature: "Signature") -> bool:
        """
        Verify a compact signature against this public key.

        Returns:
            True if valid, False otherwise
        """
        try:
            return bool(self._key.verify_msg_hash(msg_hash, signature._signature))
        except Exception:
            return False

    def __repr__(self) -> str:
        return f"PublicKey({self.to_hex()[:18]}...)"

    def __eq__(self, other) -> bool:
        if not isinstance(other, PublicKey):
            return False
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key.to_bytes())


class Signature:
    """
    Compact ECDSA signature (r || s, 64 bytes).
    """

    def __init__(self, signature: EthNonRecoverableSignature):
        self._signature = signature

    @classmethod
    def from_bytes(cls, sig_bytes: bytes) -> "Signature":
        """
        Create from 64-byte compact signature.

        Raises:
            ValueError: If the length is wrong or r/s are out of range
        """
        if len(sig_bytes) != COMPACT_SIGNATURE_SIZE:
            raise ValueError(f"Signature must be {COMPACT_SIGNATURE_SIZE} bytes, got {len(sig_bytes)}")
        try:
            return cls(EthNonRecoverableSignature(signature_bytes=bytes(sig_bytes)))
        except Exception as e:
            raise ValueError(f"Invalid signature: {e}")

    @property
    def r(self) -> int:
        return self._signature.r

    @property
    def s(self) -> int:
        return self._signature.s

    def to_bytes(self) -> bytes:
        r_bytes = self.r.to_bytes(32, byteorder='big')
        s_bytes = self.s.to_bytes(32, byteorder='big')
        return r_bytes + s_bytes

    def to_hex(self, with_prefix: bool = True) -> str:
        hex_str = self.to_bytes().hex()
        return f"0x{hex_str}" if with_prefix else hex_str

    def __repr__(self) -> str:
        return f"Signature(r={hex(self.r)[:10]}..., s={hex(self.s)[:10]}...)"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Signature):
            return False
        return self.to_bytes() == other.to_bytes()


@dataclass(frozen=True)
class KeyPair:
    """Raw key pair: 32-byte scalar and 33-byte compressed public key."""
    private_key: bytes
    public_key: bytes

    @classmethod
    def from_private_bytes(cls, material: bytes) -> "KeyPair":
        """
        Use 32 bytes of derived material directly as a secp256k1 scalar.

        Raises:
            InvalidKeyError: If the material is not a valid scalar
        """
        private_key = PrivateKey(material)
        return cls(
            private_key=private_key.to_bytes(),
            public_key=private_key.public_key.to_bytes(compressed=True),
        )

    @classmethod
    def generate(cls) -> "KeyPair":
        """Fresh random key pair."""
        private_key = PrivateKey.generate()
        return cls(
            private_key=private_key.to_bytes(),
            public_key=private_key.public_key.to_bytes(compressed=True),
        )

    def signing_key(self) -> PrivateKey:
        return PrivateKey(self.private_key)

    def __repr__(self) -> str:
        return f"KeyPair(public_key=0x{self.public_key.hex()[:16]}..., private_key=<redacted>)"
