"""
ARM Wallet Length-Prefixed Encoding Module

Fixed-count field framing used by the User Key and transfer payload wire
formats: each field is a 4-byte little-endian length followed by raw bytes.
Framed blobs travel as standard base64.
"""

import base64
import binascii
from typing import List, Sequence

from ..constants import ENDIAN, LENGTH_PREFIX_SIZE
from ..exceptions import MalformedEncoding

MAX_FIELD_LENGTH = 2 ** (8 * LENGTH_PREFIX_SIZE) - 1


def encode_fields(fields: Sequence[bytes]) -> bytes:
    """
    Frame a sequence of byte strings.

    Args:
        fields: Byte strings, written in order

    Returns:
        Concatenation of length || field for every field
    """
    out = bytearray()
    for item in fields:
        if not isinstance(item, (bytes, bytearray)):
            raise TypeError(f"Cannot encode field of type: {type(item)}")
        if len(item) > MAX_FIELD_LENGTH:
            raise ValueError(f"Field too long for {LENGTH_PREFIX_SIZE}-byte prefix: {len(item)}")
        out += len(item).to_bytes(LENGTH_PREFIX_SIZE, ENDIAN)
        out += item
    return bytes(out)


def decode_fields(data: bytes, count: int) -> List[bytes]:
    """
    Parse exactly `count` framed fields.

    Raises:
        MalformedEncoding: On truncated prefixes, lengths that overrun the
            buffer, or trailing bytes after the last field
    """
    fields = []
    offset = 0
    for index in range(count):
        if offset + LENGTH_PREFIX_SIZE > len(data):
            raise MalformedEncoding(f"Truncated length prefix for field {index}")
        length = int.from_bytes(data[offset:offset + LENGTH_PREFIX_SIZE], ENDIAN)
        offset += LENGTH_PREFIX_SIZE
        if offset + length > len(data):
            raise MalformedEncoding(
                f"Field {index} declares {length} bytes, only {len(data) - offset} remain"
            )
        fields.append(bytes(data[offset:offset + length]))
        offset += length

    if offset != len(data):
        raise MalformedEncoding(f"Trailing bytes after {count} fields: {len(data) - offset} bytes")
    return fields


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def from_base64(text: str) -> bytes:
    """
    Strict base64 decode.

    Raises:
        MalformedEncoding: On non-ASCII input or invalid base64
    """
    if isinstance(text, str):
        text = text.strip()
        try:
            raw = text.encode('ascii')
        except UnicodeEncodeError:
            raise MalformedEncoding("Base64 text contains non-ASCII characters") from None
    elif isinstance(text, (bytes, bytearray)):
        raw = bytes(text)
    else:
        raise MalformedEncoding(f"Cannot base64-decode type: {type(text)}")
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedEncoding(f"Invalid base64: {e}") from None
