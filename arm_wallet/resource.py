"""
ARM Wallet Resource Model

A resource is the unit of value handed from sender to recipient. It is
addressed by the recipient's nullifier key commitment: whoever can show
knowledge of nk with PRF(nk, NULLIFIER_COMMITMENT) == cnk can claim it.

Resources are serialized with RLP.
"""

import secrets
from typing import Any, Dict, Optional

import rlp
from rlp.exceptions import RLPException
from rlp.sedes import Binary, big_endian_int, binary, boolean, text

from .constants import RESOURCE_NONCE_SIZE
from .exceptions import MalformedEncoding


class Resource(rlp.Serializable):
    """
    Immutable resource record.

    Fields:
        kind: Resource type label (e.g. "TOKEN")
        quantity: Unsigned amount
        value: Opaque application payload
        cnk: Nullifier key commitment of the owner, empty until bound
        nonce: 32 random bytes making otherwise identical resources distinct
        logic_ref: Reference to the resource logic, opaque here
        is_ephemeral: Ephemeral resources are never persisted on the ledger
    """
    fields = [
        ('kind', text),
        ('quantity', big_endian_int),
        ('value', binary),
        ('cnk', Binary.fixed_length(32, allow_empty=True)),
        ('nonce', Binary.fixed_length(RESOURCE_NONCE_SIZE)),
        ('logic_ref', binary),
        ('is_ephemeral', boolean),
    ]

    @classmethod
    def create(
        cls,
        kind: str,
        quantity: int,
        value: bytes = b'',
        cnk: bytes = b'',
        nonce: Optional[bytes] = None,
        logic_ref: bytes = b'',
        is_ephemeral: bool = False,
    ) -> "Resource":
        """Create a resource with a fresh random nonce unless one is given."""
        if quantity < 0:
            raise ValueError(f"Resource quantity must be non-negative, got {quantity}")
        return cls(
            kind=kind,
            quantity=quantity,
            value=value,
            cnk=cnk,
            nonce=nonce if nonce is not None else secrets.token_bytes(RESOURCE_NONCE_SIZE),
            logic_ref=logic_ref,
            is_ephemeral=is_ephemeral,
        )

    def bind_to(self, cnk: bytes) -> "Resource":
        """Copy of this resource addressed to the owner of cnk."""
        return self.copy(cnk=cnk)

    def to_bytes(self) -> bytes:
        return rlp.encode(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Resource":
        """
        Raises:
            MalformedEncoding: If data is not a valid RLP resource
        """
        try:
            return rlp.decode(data, sedes=cls)
        except RLPException as e:
            raise MalformedEncoding(f"Invalid resource encoding: {e}") from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'quantity': self.quantity,
            'value': self.value.hex(),
            'cnk': self.cnk.hex(),
            'nonce': self.nonce.hex(),
            'logic_ref': self.logic_ref.hex(),
            'is_ephemeral': self.is_ephemeral,
        }

    def __repr__(self) -> str:
        return f"Resource(kind={self.kind!r}, quantity={self.quantity}, cnk=0x{self.cnk.hex()[:16]})"
