"""
ARM Wallet Ephemeral Exchange Module

Per-transfer ephemeral key pairs, secp256k1 Diffie-Hellman, and the KDF that
turns a shared secret into a symmetric key.

The KDF info is always the ephemeral public key of the exchange, so two
transfers to the same static key never share a symmetric key.
"""

from cryptography.hazmat.primitives.asymmetric import ec

from ..constants import COMPRESSED_PUBLIC_KEY_SIZE, SCALAR_SIZE, SECP256K1_N
from ..exceptions import InvalidKeyError, InvalidPublicKey
from .hashing import hmac_sha256
from .keys import KeyPair, decompress_point

_CURVE = ec.SECP256K1()


def generate_ephemeral_keypair() -> KeyPair:
    """
    Fresh random key pair for exactly one exchange.

    Never persist the result; drop it as soon as the envelope is sealed.
    """
    return KeyPair.generate()


def _load_private(private_key: bytes) -> ec.EllipticCurvePrivateKey:
    if len(private_key) != SCALAR_SIZE:
        raise InvalidKeyError(f"Private key must be {SCALAR_SIZE} bytes, got {len(private_key)}")
    scalar = int.from_bytes(private_key, "big")
    if not 0 < scalar < SECP256K1_N:
        raise InvalidKeyError("Private key scalar out of range for secp256k1")
    return ec.derive_private_key(scalar, _CURVE)


def load_public_key(public_key: bytes) -> ec.EllipticCurvePublicKey:
    """
    Parse and validate a 33-byte compressed secp256k1 point.

    Raises:
        InvalidPublicKey: Wrong length, bad prefix, or not on the curve
    """
    if not isinstance(public_key, (bytes, bytearray)):
        raise InvalidPublicKey(f"Invalid public key type: {type(public_key)}")
    if len(public_key) != COMPRESSED_PUBLIC_KEY_SIZE:
        raise InvalidPublicKey(
            f"Public key must be {COMPRESSED_PUBLIC_KEY_SIZE} bytes, got {len(public_key)}"
        )
    # On-curve check first; cryptography's own error text varies by backend
    decompress_point(bytes(public_key))
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(_CURVE, bytes(public_key))
    except ValueError as e:
        raise InvalidPublicKey(f"Invalid public key: {e}") from None


def diffie_hellman(private_key: bytes, public_key: bytes) -> bytes:
    """
    secp256k1 ECDH.

    Args:
        private_key: 32-byte scalar
        public_key: 33-byte compressed point

    Returns:
        32-byte x-coordinate of private_key · public_key

    Raises:
        InvalidPublicKey: If public_key is not a valid compressed point
        InvalidKeyError: If private_key is not a valid scalar
    """
    peer = load_public_key(public_key)
    return _load_private(bytes(private_key)).exchange(ec.ECDH(), peer)


def kdf(shared_secret: bytes, info: bytes) -> bytes:
    """
    Derive a 32-byte symmetric key: HMAC-SHA256(key=shared_secret, msg=info).

    Args:
        shared_secret: Output of diffie_hellman()
        info: The ephemeral public key used in that exchange
    """
    return hmac_sha256(bytes(shared_secret), bytes(info))
