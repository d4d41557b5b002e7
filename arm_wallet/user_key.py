"""
ARM Wallet User Key

The User Key is the signed, shareable bundle others need to address a
confidential transfer to an account:

    idpk       identity public key (33 bytes)
    cnk        nullifier key commitment (32 bytes)
    sepk       static encryption public key (33 bytes)
    sdpk       static discovery public key (33 bytes)
    signature  compact ECDSA by the identity key over SHA-256(cnk || sdpk || sepk)

The signed field order (cnk, sdpk, sepk) differs from the serialized order
(idpk, cnk, sepk, sdpk, signature). Both are wire contracts.
"""

from dataclasses import dataclass

from .constants import USER_KEY_FIELD_COUNT
from .crypto.encoding import decode_fields, encode_fields, from_base64, to_base64
from .crypto.hashing import sha256
from .crypto.keys import PrivateKey, PublicKey, Signature
from .exceptions import InvalidUserKey
from .hierarchy import StaticKeySet
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class UserKey:
    """Public, immutable key bundle. Treat as an opaque capability."""
    idpk: bytes
    cnk: bytes
    sepk: bytes
    sdpk: bytes
    signature: bytes

    def signed_message(self) -> bytes:
        return signed_message(self.cnk, self.sdpk, self.sepk)

    def fingerprint(self) -> str:
        """Short id for logs and display."""
        return f"0x{sha256(self.idpk).hex()[:16]}"

    def to_string(self) -> str:
        return serialize_user_key(self)

    @classmethod
    def from_string(cls, text: str) -> "UserKey":
        return deserialize_user_key(text)


def signed_message(cnk: bytes, sdpk: bytes, sepk: bytes) -> bytes:
    """cnk || sdpk || sepk"""
    return bytes(cnk) + bytes(sdpk) + bytes(sepk)


def create_user_key(static_keys: StaticKeySet) -> UserKey:
    """
    Build and sign the User Key for a static key set.

    Args:
        static_keys: Complete static key set

    Returns:
        UserKey ready for sharing
    """
    cnk = static_keys.nullifier.cnk
    sdpk = static_keys.static_discovery.public_key
    sepk = static_keys.static_encryption.public_key

    identity = PrivateKey(static_keys.identity.private_key)
    signature = identity.sign_msg_hash_compact(sha256(signed_message(cnk, sdpk, sepk)))

    return UserKey(
        idpk=static_keys.identity.public_key,
        cnk=cnk,
        sepk=sepk,
        sdpk=sdpk,
        signature=signature.to_bytes(),
    )


def verify_user_key(user_key: UserKey) -> bool:
    """
    Check the identity signature of a User Key.

    Never raises: malformed or adversarial input yields False.
    """
    try:
        public_key = PublicKey(user_key.idpk)
        signature = Signature.from_bytes(user_key.signature)
        msg_hash = sha256(user_key.signed_message())
        return public_key.verify_msg_hash(msg_hash, signature)
    except Exception as e:
        logger.debug("User Key verification failed: %s", e)
        return False


def serialize_user_key(user_key: UserKey) -> str:
    """
    Encode a User Key for out-of-band sharing.

    Returns:
        base64 of five length-prefixed fields: idpk, cnk, sepk, sdpk, signature
    """
    return to_base64(encode_fields([
        user_key.idpk,
        user_key.cnk,
        user_key.sepk,
        user_key.sdpk,
        user_key.signature,
    ]))


def deserialize_user_key(serialized: str) -> UserKey:
    """
    Parse a User Key string. Does not verify the signature.

    Raises:
        MalformedEncoding: On invalid base64, truncated or inconsistent prefixes
    """
    idpk, cnk, sepk, sdpk, signature = decode_fields(from_base64(serialized), USER_KEY_FIELD_COUNT)
    return UserKey(idpk=idpk, cnk=cnk, sepk=sepk, sdpk=sdpk, signature=signature)


def import_user_key(serialized: str) -> UserKey:
    """
    Parse and verify a User Key received from another user.

    Raises:
        MalformedEncoding: If the string cannot be parsed
        InvalidUserKey: If the signature does not verify
    """
    user_key = deserialize_user_key(serialized)
    if not verify_user_key(user_key):
        raise InvalidUserKey(f"User Key {user_key.fingerprint()} has an invalid signature")
    return user_key
