"""
ARM Wallet Key Sources

Two ways to obtain the static key set, both ending in the same hierarchy:

- StoredSeedSource: a random master seed lives in the credential vault and is
  released per session.
- DerivedSignatureSource: no seed is stored. Four domain-separated challenge
  messages go to an external signer and SHA-256 of each signature stands in
  for the corresponding PRF output.

The derived-signature strategy is only reproducible with a deterministic
signer. A signer that randomizes its nonces yields a different key set on
every load.
"""

import secrets
from abc import ABC, abstractmethod
from typing import Union

from ..constants import (
    CHALLENGE_IDENTITY,
    CHALLENGE_NULLIFIER,
    CHALLENGE_SIZE,
    CHALLENGE_STATIC_DISCOVERY,
    CHALLENGE_STATIC_ENCRYPTION,
    SECP256K1_N,
)
from ..crypto.hashing import sha256
from ..exceptions import InvalidKeyError, SignerError
from ..hierarchy import StaticKeySet, derive_static_keys, generate_master_seed, keys_from_materials
from ..logger import get_logger
from .signers import SignerAdapter
from .vault import CredentialVault

logger = get_logger(__name__)


class KeySource(ABC):
    """Produces a StaticKeySet after whatever authentication it needs."""

    name: str = "key source"

    @abstractmethod
    async def load(self) -> StaticKeySet:
        """
        Authenticate and derive the static key set.

        Raises:
            AuthError: Vault or signer authentication failed or was cancelled
            SignerError: External signer failed
            InvalidKeyError: Derived material is not a usable key
        """
        ...


class StoredSeedSource(KeySource):
    """Master seed behind a credential vault."""

    name = "stored seed"

    def __init__(self, vault: CredentialVault):
        self.vault = vault

    async def create_account(self) -> StaticKeySet:
        """Generate a fresh master seed, store it, and derive its key set."""
        seed = generate_master_seed()
        await self.vault.store_seed(seed)
        keys = derive_static_keys(seed)
        del seed
        logger.info(f"Created account {keys.fingerprint()}")
        return keys

    async def load(self) -> StaticKeySet:
        seed = await self.vault.get_seed(secrets.token_bytes(CHALLENGE_SIZE))
        try:
            return derive_static_keys(seed)
        finally:
            del seed


def signature_to_scalar(signature: Union[str, bytes]) -> bytes:
    """
    Hash a signature to 32 bytes of key material.

    Hex strings (with or without 0x) are decoded before hashing.

    Raises:
        SignerError: Empty or non-hex signature
        InvalidKeyError: Hash is zero or not below the curve order
    """
    if isinstance(signature, str):
        text = signature[2:] if signature.startswith(('0x', '0X')) else signature
        try:
            signature = bytes.fromhex(text)
        except ValueError:
            raise SignerError("Signer returned a non-hex signature") from None
    if not signature:
        raise SignerError("Signer returned an empty signature")

    scalar = sha256(bytes(signature))
    value = int.from_bytes(scalar, 'big')
    if value == 0 or value >= SECP256K1_N:
        raise InvalidKeyError("Signature hash is not a valid secp256k1 scalar")
    return scalar


class DerivedSignatureSource(KeySource):
    """Key material re-derived from signer output at every load."""

    name = "derived signature"

    def __init__(self, signer: SignerAdapter):
        self.signer = signer

    async def _material(self, challenge: str) -> bytes:
        return signature_to_scalar(await self.signer.sign_message(challenge))

    async def load(self) -> StaticKeySet:
        if not await self.signer.is_connected():
            await self.signer.connect()

        nk = await self._material(CHALLENGE_NULLIFIER)
        static_encryption = await self._material(CHALLENGE_STATIC_ENCRYPTION)
        static_discovery = await self._material(CHALLENGE_STATIC_DISCOVERY)
        identity = await self._material(CHALLENGE_IDENTITY)

        keys = keys_from_materials(
            identity=identity,
            nk=nk,
            static_encryption=static_encryption,
            static_discovery=static_discovery,
        )
        logger.debug(f"Derived key set {keys.fingerprint()} from {self.signer.name}")
        return keys
