"""
ARM Wallet Crypto Signing Module

Provides message signing using secp256k1:
- compact signatures over SHA-256 digests (User Key, identity signing)
- Ethereum personal_sign, used by in-process signer adapters
"""

from typing import Union

from eth_keys.datatypes import Signature as EthSignature
from eth_utils import keccak

from .hashing import sha256
from .keys import PrivateKey, PublicKey, Signature


def sign_digest(private_key: PrivateKey, message: bytes) -> Signature:
    """Sign SHA-256(message) with a compact signature."""
    return private_key.sign_msg_hash_compact(sha256(message))


def verify_digest(public_key: PublicKey, message: bytes, signature: Signature) -> bool:
    """Verify a signature produced by sign_digest()."""
    return public_key.verify_msg_hash(sha256(message), signature)


def personal_message_hash(message: Union[bytes, str]) -> bytes:
    """
    Hash a message Ethereum personal_sign style.

    The message is prefixed with "\\x19Ethereum Signed Message:\\n{length}"
    before hashing with keccak256.
    """
    if isinstance(message, str):
        message = message.encode('utf-8')
    prefix = b'\x19Ethereum Signed Message:\n' + str(len(message)).encode()
    return keccak(prefix + message)


def sign_message(private_key: PrivateKey, message: Union[bytes, str]) -> bytes:
    """
    Sign a message (Ethereum personal_sign style).

    Args:
        private_key: PrivateKey to sign with
        message: Raw message bytes or text

    Returns:
        65-byte signature r || s || v
    """
    return private_key.sign_msg_hash(personal_message_hash(message))


def recover_message_signer(message: Union[bytes, str], signature: bytes) -> PublicKey:
    """
    Recover signer public key from a personal_sign signature.

    Args:
        message: Original message bytes or text
        signature: 65 bytes from sign_message()

    Returns:
        Recovered PublicKey
    """
    if len(signature) != 65:
        raise ValueError(f"Recoverable signature must be 65 bytes, got {len(signature)}")
    v = signature[64]
    # Normalize v to 0/1
    if v >= 27:
        v -= 27
    eth_sig = EthSignature(vrs=(
        v,
        int.from_bytes(signature[0:32], 'big'),
        int.from_bytes(signature[32:64], 'big'),
    ))
    recovered = eth_sig.recover_public_key_from_msg_hash(personal_message_hash(message))
    return PublicKey(recovered)
