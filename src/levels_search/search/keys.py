"""Key layout for the inverted index.

Keys are tuples of ``str`` and ``int`` components packed into bytes whose
bytewise order equals the component-wise tuple order. Stores only ever compare
raw bytes, so a range scan over a packed prefix returns every key that extends
it, in order.

Two key families live under each namespace::

    (namespace, "word", code, doc_id)    -> doc_id   forward posting
    (namespace, "object", doc_id, code)  -> code     reverse membership
"""

from __future__ import annotations

from collections.abc import Sequence
import re

from levels_search.errors import InvalidDocumentIdError


WORD_FAMILY = "word"
OBJECT_FAMILY = "object"

KeyPart = str | int

_STR_TAG = 0x02
_INT_TAG = 0x15
_INT_BIAS = 1 << 63
_INT_MIN = -(1 << 63)
_INT_MAX = (1 << 63) - 1
# Sorts after every tag byte, so prefix + _RANGE_END bounds all extensions.
_RANGE_END = b"\xff"
_DECIMAL_ID = re.compile(r"[+-]?[0-9]+")


def pack(parts: Sequence[KeyPart]) -> bytes:
    """Encode ``parts`` into an order-preserving byte string."""
    out = bytearray()
    for part in parts:
        # bool is an int subclass; reject it so True never aliases 1.
        if isinstance(part, bool):
            raise TypeError("bool is not a valid key component")
        if isinstance(part, int):
            if not _INT_MIN <= part <= _INT_MAX:
                raise OverflowError(f"integer key component out of 64-bit range: {part}")
            out.append(_INT_TAG)
            out += (part + _INT_BIAS).to_bytes(8, "big")
        elif isinstance(part, str):
            out.append(_STR_TAG)
            out += part.encode("utf-8").replace(b"\x00", b"\x00\xff")
            out.append(0x00)
        else:
            raise TypeError(f"unsupported key component type: {type(part).__name__}")
    return bytes(out)


def unpack(data: bytes) -> tuple[KeyPart, ...]:
    """Decode a byte string produced by :func:`pack`."""
    parts: list[KeyPart] = []
    pos = 0
    length = len(data)
    while pos < length:
        tag = data[pos]
        pos += 1
        if tag == _INT_TAG:
            if pos + 8 > length:
                raise ValueError("truncated integer key component")
            parts.append(int.from_bytes(data[pos : pos + 8], "big") - _INT_BIAS)
            pos += 8
        elif tag == _STR_TAG:
            raw = bytearray()
            while True:
                if pos >= length:
                    raise ValueError("unterminated string key component")
                byte = data[pos]
                if byte == 0x00:
                    if pos + 1 < length and data[pos + 1] == 0xFF:
                        raw.append(0x00)
                        pos += 2
                        continue
                    pos += 1
                    break
                raw.append(byte)
                pos += 1
            parts.append(raw.decode("utf-8"))
        else:
            raise ValueError(f"unknown key component tag: {tag:#04x}")
    return tuple(parts)


def prefix_range(prefix: Sequence[KeyPart]) -> tuple[bytes, bytes]:
    """Return the half-open ``[start, end)`` byte range covering ``prefix``."""
    start = pack(prefix)
    return start, start + _RANGE_END


def coerce_doc_id(doc_id: object) -> int:
    """Coerce ``doc_id`` to the integer type used in every key."""
    if isinstance(doc_id, bool):
        raise InvalidDocumentIdError(f"document id must be an integer, got {doc_id!r}")
    if isinstance(doc_id, int):
        value = doc_id
    elif isinstance(doc_id, str) and _DECIMAL_ID.fullmatch(doc_id.strip()):
        value = int(doc_id.strip())
    else:
        raise InvalidDocumentIdError(f"document id must be an integer, got {doc_id!r}")
    if not _INT_MIN <= value <= _INT_MAX:
        raise InvalidDocumentIdError(f"document id out of 64-bit range: {value}")
    return value


def word_key(namespace: str, code: str, doc_id: int) -> bytes:
    return pack((namespace, WORD_FAMILY, code, doc_id))


def object_key(namespace: str, doc_id: int, code: str) -> bytes:
    return pack((namespace, OBJECT_FAMILY, doc_id, code))


def word_range(namespace: str, code: str) -> tuple[bytes, bytes]:
    """Range holding every forward posting for ``code``."""
    return prefix_range((namespace, WORD_FAMILY, code))


def object_range(namespace: str, doc_id: int) -> tuple[bytes, bytes]:
    """Range holding every reverse entry contributed by ``doc_id``."""
    return prefix_range((namespace, OBJECT_FAMILY, doc_id))
