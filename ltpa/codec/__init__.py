"""
Token codec package.

- username: text <-> dual code page (850 / escaped 852) username bytes.
- token: the fixed LTPA1 byte layout and its base64 wire form.

Nothing here checks signatures or timestamps; see ``ltpa.signing`` and
``ltpa.validation``.
"""

from .token import MAGIC, MIN_TOKEN_LENGTH, Token, parse, parse_bytes, serialize, to_base64
from .username import CodePage, Glyph, decode_username, encode_username

__all__ = [
    "MAGIC",
    "MIN_TOKEN_LENGTH",
    "Token",
    "parse",
    "parse_bytes",
    "serialize",
    "to_base64",
    "CodePage",
    "Glyph",
    "decode_username",
    "encode_username",
]
