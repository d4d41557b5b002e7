"""
ARM Wallet Crypto Address Module

Ethereum-style addresses for secp256k1 signer keys. Signer adapters report an
address so callers can tell which account produced the derivation signatures.
"""

from eth_utils import keccak, to_checksum_address


def public_key_to_address(public_key) -> str:
    """
    Derive address from public key: last 20 bytes of keccak256(x || y).

    Args:
        public_key: PublicKey instance or raw 33/64/65-byte public key

    Returns:
        EIP-55 checksum address
    """
    if not hasattr(public_key, 'to_bytes'):
        from .keys import PublicKey
        public_key = PublicKey(public_key)

    pub_bytes = public_key.to_bytes()
    if len(pub_bytes) != 64:
        raise ValueError(f"secp256k1 public key must be 64 bytes, got {len(pub_bytes)}")

    return to_checksum_address(keccak(pub_bytes)[-20:])
