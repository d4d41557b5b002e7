"""
ARM Wallet Confidential Transfer

Two-message encrypted handoff between a sender holding the recipient's User
Key and a recipient holding its static key set.

Sender:
    r.cnk := recipient.cnk
    rek   = kdf(DH(eesk, sepk), eepk)      ce = encrypt(rek, rlp(r))
    dek   = kdf(DH(edsk, sdpk), edpk)      cd = encrypt(dek, hint)
    publish {ce, eepk, cd, edpk}

Recipient, for every observed payload:
    dek' = kdf(DH(sdsk, edpk), edpk)       tag mismatch on cd     -> not ours, skip
    rek' = kdf(DH(sesk, eepk), eepk)       any failure on ce      -> IntegrityError

Both ephemeral key pairs are fresh per transfer and dropped after sealing.
"""

import secrets
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .constants import DISCOVERY_HINT_PREFIX, DISCOVERY_HINT_TAG_SIZE, SCAN_MAX_WORKERS
from .crypto.cipher import decrypt, encrypt
from .crypto.encoding import decode_fields, encode_fields
from .crypto.exchange import diffie_hellman, generate_ephemeral_keypair, kdf
from .exceptions import (
    AuthenticationFailure,
    IntegrityError,
    InvalidPublicKey,
    InvalidUserKey,
    MalformedEncoding,
)
from .hierarchy import StaticKeySet
from .logger import get_logger
from .resource import Resource
from .user_key import UserKey, verify_user_key

logger = get_logger(__name__)

PAYLOAD_FIELD_COUNT = 4


@dataclass(frozen=True)
class TransferPayload:
    """What goes on the wire. Carries no cleartext routing metadata."""
    ce: bytes
    eepk: bytes
    cd: bytes
    edpk: bytes

    def to_dict(self) -> Dict[str, str]:
        return {
            'ce': self.ce.hex(),
            'eepk': self.eepk.hex(),
            'cd': self.cd.hex(),
            'edpk': self.edpk.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransferPayload":
        try:
            return cls(
                ce=bytes.fromhex(data['ce']),
                eepk=bytes.fromhex(data['eepk']),
                cd=bytes.fromhex(data['cd']),
                edpk=bytes.fromhex(data['edpk']),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedEncoding(f"Invalid transfer payload: {e}") from None

    def to_bytes(self) -> bytes:
        return encode_fields([self.ce, self.eepk, self.cd, self.edpk])

    @classmethod
    def from_bytes(cls, data: bytes) -> "TransferPayload":
        ce, eepk, cd, edpk = decode_fields(data, PAYLOAD_FIELD_COUNT)
        return cls(ce=ce, eepk=eepk, cd=cd, edpk=edpk)


@dataclass(frozen=True)
class ReceivedTransfer:
    """A payload that decrypted under our static keys."""
    resource: Resource
    discovery_hint: bytes
    payload: TransferPayload


def make_discovery_hint(tag: Optional[bytes] = None) -> bytes:
    """DISCOVERY_HINT_PREFIX || tag, with a random 16-byte tag by default."""
    if tag is None:
        tag = secrets.token_bytes(DISCOVERY_HINT_TAG_SIZE)
    return DISCOVERY_HINT_PREFIX + bytes(tag)


def _seal(recipient_public_key: bytes, plaintext: bytes) -> Tuple[bytes, bytes]:
    """Encrypt to a static key under a fresh ephemeral key. Returns (ciphertext, epk)."""
    ephemeral = generate_ephemeral_keypair()
    key = kdf(diffie_hellman(ephemeral.private_key, recipient_public_key), ephemeral.public_key)
    return encrypt(key, plaintext), ephemeral.public_key


def _open(static_private_key: bytes, ephemeral_public_key: bytes, ciphertext: bytes) -> bytes:
    key = kdf(diffie_hellman(static_private_key, ephemeral_public_key), ephemeral_public_key)
    return decrypt(key, ciphertext)


def seal_transfer(
    recipient: UserKey,
    resource: Resource,
    discovery_hint: Optional[bytes] = None,
) -> Tuple[TransferPayload, Resource]:
    """
    Encrypt a resource for the owner of a User Key.

    Args:
        recipient: Recipient's User Key
        resource: Resource to hand off; its cnk is replaced by the recipient's
        discovery_hint: Optional hint tag appended to DISCOVERY_HINT_PREFIX

    Returns:
        (payload to publish, resource as bound to the recipient)

    Raises:
        InvalidUserKey: If the recipient's User Key signature does not verify
        InvalidPublicKey: If a recipient public key is not a valid point
    """
    if not verify_user_key(recipient):
        raise InvalidUserKey(f"Refusing to send to unverified User Key {recipient.fingerprint()}")

    bound = resource.bind_to(recipient.cnk)
    ce, eepk = _seal(recipient.sepk, bound.to_bytes())
    cd, edpk = _seal(recipient.sdpk, make_discovery_hint(discovery_hint))

    logger.info(
        "Sealed %s x%d for %s",
        bound.kind, bound.quantity, recipient.fingerprint(),
    )
    return TransferPayload(ce=ce, eepk=eepk, cd=cd, edpk=edpk), bound


def open_transfer(static_keys: StaticKeySet, payload: TransferPayload) -> Optional[ReceivedTransfer]:
    """
    Trial-decrypt one payload.

    Returns:
        ReceivedTransfer if the payload is addressed to these keys, else None

    Raises:
        IntegrityError: Discovery succeeded but the payload is inconsistent
        InvalidPublicKey: If the discovery ephemeral key is not a valid point
        MalformedEncoding: If the discovery ciphertext is too short to be an envelope
    """
    try:
        hint = _open(static_keys.static_discovery.private_key, payload.edpk, payload.cd)
    except AuthenticationFailure:
        return None

    if not hint.startswith(DISCOVERY_HINT_PREFIX):
        logger.error("Integrity failure: discovery hint decrypted without the expected prefix")
        raise IntegrityError("Discovery hint has an unrecognized format")

    # Past discovery the payload is ours; any failure from here on is tampering
    try:
        plaintext = _open(static_keys.static_encryption.private_key, payload.eepk, payload.ce)
    except (AuthenticationFailure, InvalidPublicKey, MalformedEncoding) as e:
        logger.error("Integrity failure: resource ciphertext rejected after discovery: %s", e)
        raise IntegrityError(f"Resource payload failed after discovery: {e}") from None

    try:
        resource = Resource.from_bytes(plaintext)
    except MalformedEncoding as e:
        logger.error("Integrity failure: decrypted resource is malformed: %s", e)
        raise IntegrityError(f"Decrypted resource is malformed: {e}") from None

    if resource.cnk != static_keys.nullifier.cnk:
        logger.error("Integrity failure: resource bound to a different nullifier commitment")
        raise IntegrityError("Resource is not bound to this account's nullifier commitment")

    logger.debug("Discovered %s x%d", resource.kind, resource.quantity)
    return ReceivedTransfer(resource=resource, discovery_hint=hint, payload=payload)


def _try_open(static_keys: StaticKeySet, payload: TransferPayload) -> Optional[ReceivedTransfer]:
    try:
        return open_transfer(static_keys, payload)
    except (InvalidPublicKey, MalformedEncoding) as e:
        logger.debug("Skipping malformed payload: %s", e)
        return None


def scan_payloads(
    static_keys: StaticKeySet,
    payloads: Iterable[TransferPayload],
    max_workers: int = SCAN_MAX_WORKERS,
) -> List[ReceivedTransfer]:
    """
    Trial-decrypt every payload and keep the ones addressed to us.

    Results are in input order regardless of max_workers. IntegrityError
    from any payload propagates.
    """
    candidates = list(payloads)
    if max_workers > 1 and len(candidates) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(lambda p: _try_open(static_keys, p), candidates))
    else:
        results = [_try_open(static_keys, p) for p in candidates]

    received = [r for r in results if r is not None]
    logger.info("Scanned %d payloads, %d addressed to %s", len(candidates), len(received), static_keys.fingerprint())
    return received
