"""
ARM Wallet Exceptions

Custom exception classes for the ARM wallet key hierarchy and transfer protocol.
"""


class ARMWalletError(Exception):
    """Base exception for ARM wallet."""
    pass


class InvalidSeedLength(ARMWalletError):
    """Seed or PRF secret is not exactly 32 bytes."""
    pass


class InvalidDomainLabel(ARMWalletError):
    """PRF label is not a member of the fixed domain label set."""
    pass


class InvalidKeyError(ARMWalletError):
    """Invalid cryptographic key."""
    pass


class InvalidPublicKey(InvalidKeyError):
    """Public key is malformed or not a point on the curve."""
    pass


class MalformedEncoding(ARMWalletError):
    """Serialized blob is truncated, inconsistent or otherwise unreadable."""
    pass


class InvalidUserKey(ARMWalletError):
    """User Key signature does not verify against its identity key."""
    pass


class CryptoError(ARMWalletError):
    """Symmetric decryption error."""
    pass


class AuthenticationFailure(CryptoError):
    """AEAD tag mismatch. Expected during discovery trial decryption."""
    pass


class IntegrityError(CryptoError):
    """Payload failed after discovery succeeded. Tampering or protocol defect."""
    pass


class AuthError(ARMWalletError):
    """Base class for vault and signer authentication errors."""
    pass


class VaultAuthenticationError(AuthError):
    """Credential vault refused to release the seed."""
    pass


class AuthenticationTimeout(AuthError):
    """Vault or external signer did not answer in time."""
    pass


class UserCancelled(AuthError):
    """User dismissed the authentication or signature prompt."""
    pass


class SignerError(ARMWalletError):
    """External signer failed or is unavailable."""
    pass


class SessionStateError(ARMWalletError):
    """Operation not allowed in the current session state."""
    pass


class ConfigurationError(ARMWalletError):
    """Configuration error."""
    pass
