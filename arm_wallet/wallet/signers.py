"""
ARM Wallet Signer Adapters

A signer adapter is an external signing capability: something that will sign
a text message on request, possibly after asking the user. The
derived-signature key source treats every adapter the same way, so backends
are tagged variants of one interface.

Adapters:
- LocalKeySigner: in-process secp256k1 key, Ethereum personal_sign
- VaultKeySigner: identity key derived from a vault seed, compact signature
"""

import secrets
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Sequence, Union

from ..constants import CHALLENGE_SIZE
from ..crypto.address import public_key_to_address
from ..crypto.hashing import DomainLabel, prf
from ..crypto.keys import PrivateKey
from ..crypto.signing import sign_digest, sign_message
from ..exceptions import SignerError
from ..logger import get_logger
from .vault import CredentialVault

logger = get_logger(__name__)


class SignerKind(str, Enum):
    """Signer backend tag."""
    LOCAL_KEY = "local_key"
    VAULT_KEY = "vault_key"
    EXTERNAL = "external"


class SignerAdapter(ABC):
    """
    Capability interface for a message signer.

    Signatures are returned as 0x-prefixed hex strings. A signer used for key
    derivation must be deterministic: the same message must always produce
    the same signature.
    """

    name: str = "signer"
    kind: SignerKind = SignerKind.EXTERNAL

    def __init__(self):
        self._connected = False

    async def is_available(self) -> bool:
        return True

    async def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self._connected = True
        logger.debug(f"{self.name}: connected")

    def _require_connected(self) -> None:
        if not self._connected:
            raise SignerError(f"{self.name} is not connected")

    @abstractmethod
    async def get_address(self) -> str:
        """Checksummed address of the signing key."""
        ...

    @abstractmethod
    async def sign_message(self, message: str) -> str:
        """
        Sign a text message.

        Raises:
            SignerError: If the signer is not connected or signing fails
            UserCancelled: If the user rejects the request
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, kind={self.kind.value})"


class LocalKeySigner(SignerAdapter):
    """
    In-process key, Ethereum personal_sign.

    eth-keys signs with RFC 6979 nonces, so signatures are deterministic.
    """

    name = "Local Key"
    kind = SignerKind.LOCAL_KEY

    def __init__(self, private_key: Union[PrivateKey, bytes, str, None] = None):
        super().__init__()
        if private_key is None:
            private_key = PrivateKey.generate()
        elif isinstance(private_key, str):
            private_key = PrivateKey.from_hex(private_key)
        elif isinstance(private_key, (bytes, bytearray)):
            private_key = PrivateKey(bytes(private_key))
        self._private_key = private_key

    async def get_address(self) -> str:
        return public_key_to_address(self._private_key.public_key)

    async def sign_message(self, message: str) -> str:
        self._require_connected()
        return '0x' + sign_message(self._private_key, message).hex()


class VaultKeySigner(SignerAdapter):
    """
    Signs with the identity key of a vault-held seed.

    connect() is the authentication step: it unlocks the vault once and keeps
    only the identity key.
    """

    name = "Vault Key"
    kind = SignerKind.VAULT_KEY

    def __init__(self, vault: CredentialVault):
        super().__init__()
        self._vault = vault
        self._identity: Optional[PrivateKey] = None

    async def is_available(self) -> bool:
        return self._vault.has_credentials()

    async def connect(self) -> None:
        seed = await self._vault.get_seed(secrets.token_bytes(CHALLENGE_SIZE))
        self._identity = PrivateKey(prf(seed, DomainLabel.IDENTITY))
        await super().connect()

    def disconnect(self) -> None:
        self._identity = None
        self._connected = False

    def _key(self) -> PrivateKey:
        self._require_connected()
        if self._identity is None:
            raise SignerError(f"{self.name} has no identity key loaded")
        return self._identity

    async def get_address(self) -> str:
        return public_key_to_address(self._key().public_key)

    async def sign_message(self, message: str) -> str:
        return sign_digest(self._key(), message.encode('utf-8')).to_hex()


async def available_signers(adapters: Sequence[SignerAdapter]) -> List[SignerAdapter]:
    """Adapters whose backend is usable right now, in the given order."""
    available = []
    for adapter in adapters:
        try:
            if await adapter.is_available():
                available.append(adapter)
        except SignerError as e:
            logger.debug(f"{adapter.name}: unavailable ({e})")
    return available
