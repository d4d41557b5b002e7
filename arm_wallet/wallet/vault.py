"""
ARM Wallet Credential Vault

The vault custodies the 32-byte master seed and releases it only after the
user authenticates. Implementations:

- MemoryVault: in-process, optional async approval hook (tests, embedded use)
- KeystoreVault: JSON keystore file, seed encrypted with PBKDF2-SHA256 + Fernet

Keystore format:
    {
        "version": 1,
        "created_at": "<ISO-8601 timestamp>",
        "crypto": {
            "ciphertext": "<base64 fernet token>",
            "salt": "<hex>",
            "iterations": 100000,
            "kdf": "pbkdf2-sha256",
            "cipher": "fernet"
        }
    }
"""

import asyncio
import base64
import json
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..constants import KEYSTORE_KDF_ITERATIONS, KEYSTORE_VERSION, SEED_SIZE
from ..exceptions import InvalidSeedLength, UserCancelled, VaultAuthenticationError
from ..logger import get_logger

logger = get_logger(__name__)

ApprovalHook = Callable[[bytes], Awaitable[bool]]
PasswordProvider = Callable[[str], Awaitable[Optional[str]]]


def _check_seed(seed: bytes) -> bytes:
    if not isinstance(seed, (bytes, bytearray)) or len(seed) != SEED_SIZE:
        raise InvalidSeedLength(f"Master seed must be exactly {SEED_SIZE} bytes")
    return bytes(seed)


class CredentialVault(ABC):
    """Custodian of the master seed."""

    @abstractmethod
    async def get_seed(self, challenge: bytes) -> bytes:
        """
        Release the seed after user authentication.

        Args:
            challenge: Fresh random bytes bound to this request

        Raises:
            VaultAuthenticationError: Authentication failed or no seed stored
            UserCancelled: User dismissed the prompt
        """
        ...

    @abstractmethod
    async def store_seed(self, seed: bytes) -> None:
        """Persist a newly generated seed."""
        ...

    @abstractmethod
    def has_credentials(self) -> bool:
        """True if a seed is stored."""
        ...


class MemoryVault(CredentialVault):
    """
    Seed held in process memory.

    An optional approval hook stands in for the biometric prompt: it receives
    the challenge and returns True to release the seed.
    """

    def __init__(self, seed: Optional[bytes] = None, approve: Optional[ApprovalHook] = None):
        self._seed = _check_seed(seed) if seed is not None else None
        self._approve = approve

    async def get_seed(self, challenge: bytes) -> bytes:
        if self._seed is None:
            raise VaultAuthenticationError("No seed stored in vault")
        if self._approve is not None and not await self._approve(challenge):
            raise VaultAuthenticationError("Vault access denied")
        return self._seed

    async def store_seed(self, seed: bytes) -> None:
        self._seed = _check_seed(seed)

    def has_credentials(self) -> bool:
        return self._seed is not None


# ══════════════════════════════════════════════════════════════════════
#  KEYSTORE FILE
# ══════════════════════════════════════════════════════════════════════

def _fernet(password: str, salt: bytes, iterations: int) -> Fernet:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    return Fernet(base64.urlsafe_b64encode(kdf.derive(password.encode())))


def encrypt_seed(seed: bytes, password: str, iterations: int = KEYSTORE_KDF_ITERATIONS) -> Dict[str, Any]:
    """
    Encrypt a seed with a password.

    Returns:
        Dictionary with encrypted data and KDF parameters
    """
    salt = os.urandom(16)
    token = _fernet(password, salt, iterations).encrypt(_check_seed(seed))
    return {
        'ciphertext': base64.b64encode(token).decode('ascii'),
        'salt': salt.hex(),
        'iterations': iterations,
        'kdf': 'pbkdf2-sha256',
        'cipher': 'fernet',
    }


def decrypt_seed(encrypted: Dict[str, Any], password: str) -> bytes:
    """
    Decrypt a seed produced by encrypt_seed().

    Raises:
        VaultAuthenticationError: Wrong password or unreadable keystore
    """
    if not isinstance(encrypted, dict):
        raise VaultAuthenticationError("Corrupt keystore: crypto section is not an object")
    if encrypted.get('cipher') != 'fernet' or encrypted.get('kdf') != 'pbkdf2-sha256':
        raise VaultAuthenticationError(
            f"Unsupported keystore cipher: {encrypted.get('cipher')}/{encrypted.get('kdf')}"
        )
    try:
        salt = bytes.fromhex(encrypted['salt'])
        token = base64.b64decode(encrypted['ciphertext'])
        f = _fernet(password, salt, int(encrypted['iterations']))
    except (KeyError, TypeError, ValueError) as e:
        raise VaultAuthenticationError(f"Corrupt keystore: {e}") from None

    try:
        seed = f.decrypt(token)
    except InvalidToken:
        raise VaultAuthenticationError("Invalid password") from None

    if len(seed) != SEED_SIZE:
        raise VaultAuthenticationError("Keystore does not contain a valid seed")
    return seed


class KeystoreVault(CredentialVault):
    """
    Seed encrypted at rest in a JSON keystore file.

    The password comes from an async provider. A provider returning None means
    the user dismissed the prompt.
    """

    def __init__(
        self,
        path: Union[str, Path],
        password_provider: PasswordProvider,
        iterations: int = KEYSTORE_KDF_ITERATIONS,
    ):
        self.path = Path(path).expanduser()
        self._password_provider = password_provider
        self.iterations = iterations

    async def _password(self, prompt: str) -> str:
        password = await self._password_provider(prompt)
        if password is None:
            raise UserCancelled("Password prompt dismissed")
        return password

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise VaultAuthenticationError(f"No keystore at {self.path}") from None
        except json.JSONDecodeError as e:
            raise VaultAuthenticationError(f"Corrupt keystore {self.path}: {e}") from None

        if not isinstance(data, dict) or data.get('version') != KEYSTORE_VERSION:
            raise VaultAuthenticationError(f"Unsupported keystore version in {self.path}")
        if not isinstance(data.get('crypto'), dict):
            raise VaultAuthenticationError(f"Corrupt keystore {self.path}: missing crypto section")
        return data

    async def get_seed(self, challenge: bytes) -> bytes:
        data = self._read()
        password = await self._password(f"Password for {self.path}: ")
        seed = await asyncio.to_thread(decrypt_seed, data['crypto'], password)
        logger.debug(f"Unlocked keystore {self.path}")
        return seed

    async def store_seed(self, seed: bytes) -> None:
        seed = _check_seed(seed)
        password = await self._password(f"New password for {self.path}: ")
        encrypted = await asyncio.to_thread(encrypt_seed, seed, password, self.iterations)

        data = {
            'version': KEYSTORE_VERSION,
            'created_at': datetime.now(timezone.utc).isoformat(),
            'crypto': encrypted,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + '.tmp')
        tmp.unlink(missing_ok=True)
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, self.path)
        logger.info(f"Keystore written to {self.path}")

    def has_credentials(self) -> bool:
        return self.path.exists()
