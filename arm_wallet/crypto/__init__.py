"""
ARM Wallet Crypto Module

This module provides the cryptographic primitives for the wallet core:
- secp256k1 keys (identity, static and ephemeral key pairs)
- Domain-separated PRF and SHA-256
- Compact and personal_sign signatures
- Ephemeral Diffie-Hellman and KDF
- AES-256-GCM authenticated encryption
- Length-prefixed field encoding
"""

from .keys import PrivateKey, PublicKey, Signature, KeyPair
from .hashing import DomainLabel, prf, sha256, hmac_sha256
from .signing import (
    sign_message,
    sign_digest,
    verify_digest,
    recover_message_signer,
)
from .address import public_key_to_address
from .exchange import generate_ephemeral_keypair, diffie_hellman, kdf
from .cipher import encrypt, decrypt, EncryptedEnvelope
from .encoding import encode_fields, decode_fields, to_base64, from_base64

__all__ = [
    # Keys (secp256k1)
    "PrivateKey",
    "PublicKey",
    "Signature",
    "KeyPair",
    # Hashing
    "DomainLabel",
    "prf",
    "sha256",
    "hmac_sha256",
    # Signing
    "sign_message",
    "sign_digest",
    "verify_digest",
    "recover_message_signer",
    # Address
    "public_key_to_address",
    # Exchange
    "generate_ephemeral_keypair",
    "diffie_hellman",
    "kdf",
    # Cipher
    "encrypt",
    "decrypt",
    "EncryptedEnvelope",
    # Encoding
    "encode_fields",
    "decode_fields",
    "to_base64",
    "from_base64",
]
