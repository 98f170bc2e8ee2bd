"""
LTPA1 binary layout.

    offset  length  field
    0       4       magic 00 01 02 03
    4       8       creation time, lowercase hex text, zero-byte padded
    12      8       expiration time, same encoding
    20      n       username bytes
    20+n    20      signature
"""

import base64
import re
from dataclasses import dataclass, field
from typing import Optional

from shared.errors import FormatError, InputError

MAGIC = bytes((0x00, 0x01, 0x02, 0x03))
HEADER_LENGTH = 20
SIGNATURE_LENGTH = 20
TIME_FIELD_LENGTH = 8
MIN_TOKEN_LENGTH = HEADER_LENGTH + 1 + SIGNATURE_LENGTH

_HEX_PREFIX_RE = re.compile(rb"[0-9a-fA-F]+")
_NON_ALPHABET_RE = re.compile(r"[^A-Za-z0-9+/]")


@dataclass
class Token:
    """A parsed or freshly built token. Not cached, not shared between calls."""
    # None when the field holds no hex digits; such tokens only fail on signature
    time_creation: Optional[int]
    time_expiration: Optional[int]
    username: bytes
    signature: bytes = bytes(SIGNATURE_LENGTH)
    version: bytes = MAGIC
    # bytes this token was parsed from; signature checks run over these
    source: Optional[bytes] = field(default=None, repr=False, compare=False)

    @property
    def length(self) -> int:
        return HEADER_LENGTH + len(self.username) + SIGNATURE_LENGTH


def _format_time(value: Optional[int]) -> bytes:
    text = format(value, "x") if value is not None and value >= 0 else ""
    if not text or len(text) > TIME_FIELD_LENGTH:
        raise ValueError(f"Timestamp {value} does not fit in {TIME_FIELD_LENGTH} hex digits")
    return text.encode("ascii").ljust(TIME_FIELD_LENGTH, b"\x00")


def _parse_time(raw: bytes) -> Optional[int]:
    match = _HEX_PREFIX_RE.match(raw)
    if match is None:
        return None
    return int(match.group(0), 16)


def b64decode_token(text: str) -> bytes:
    """Decode cookie text leniently.

    URL-safe characters map to the standard alphabet, anything else outside
    it (whitespace, padding, stray bytes) is skipped, and a lone trailing
    sextet that cannot make a whole byte is dropped. Garbage therefore
    decodes to something short or unsigned instead of failing here.
    """
    cleaned = _NON_ALPHABET_RE.sub("", text.replace("-", "+").replace("_", "/"))
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    cleaned += "=" * (-len(cleaned) % 4)
    return base64.b64decode(cleaned)


def serialize(token: Token) -> bytes:
    """Lay out the token bytes, signature included as it currently stands."""
    if len(token.signature) != SIGNATURE_LENGTH:
        raise ValueError(f"Signature must be {SIGNATURE_LENGTH} bytes")

    return b"".join((
        token.version,
        _format_time(token.time_creation),
        _format_time(token.time_expiration),
        token.username,
        token.signature,
    ))


def to_base64(token: Token) -> str:
    return base64.b64encode(serialize(token)).decode("ascii")


def parse_bytes(raw: bytes) -> Token:
    """Slice decoded token bytes into fields."""
    if len(raw) < MIN_TOKEN_LENGTH:
        # the username must be at least one byte long
        raise FormatError("Ltpa Token too short", details={"length": len(raw)})

    return Token(
        version=raw[0:4],
        time_creation=_parse_time(raw[4:12]),
        time_expiration=_parse_time(raw[12:HEADER_LENGTH]),
        username=raw[HEADER_LENGTH:-SIGNATURE_LENGTH],
        signature=raw[-SIGNATURE_LENGTH:],
        source=bytes(raw),
    )


def parse(text: str) -> Token:
    """Parse base64 token text. No validation beyond the layout."""
    if not text:
        raise InputError("No token provided")
    return parse_bytes(b64decode_token(text))
