"""
ARM Wallet Module

Credential vaults, signer adapters, key-sourcing strategies and the session
object that ties them together.
"""

from .vault import CredentialVault, MemoryVault, KeystoreVault
from .signers import SignerAdapter, SignerKind, LocalKeySigner, VaultKeySigner, available_signers
from .sources import KeySource, StoredSeedSource, DerivedSignatureSource, signature_to_scalar
from .session import WalletSession, SessionState

__all__ = [
    # Vaults
    "CredentialVault",
    "MemoryVault",
    "KeystoreVault",
    # Signers
    "SignerAdapter",
    "SignerKind",
    "LocalKeySigner",
    "VaultKeySigner",
    "available_signers",
    # Key sources
    "KeySource",
    "StoredSeedSource",
    "DerivedSignatureSource",
    "signature_to_scalar",
    # Session
    "WalletSession",
    "SessionState",
]
