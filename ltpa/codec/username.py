"""
Username transcoding between text and the legacy dual code page bytes.

Each character becomes one glyph: a plain code page 850 byte, or, for the
curated Eastern-European set, an escape byte (0x06) followed by the code page
852 byte. Partner servers compare these bytes exactly.
"""

import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from shared.errors import EncodingError

ESCAPE = 0x06
REPLACEMENT = ord("?")

# Always escaped into code page 852, even where code page 850 also has them.
EXTENDED_CHARS = frozenset(
    "ÇüéâäůćçłëŐőîŹÄĆÉĹĺôöĽľŚśÖÜŤťŁčáíóúĄąŽžĘę¬źČşÁÂĚŞŻżĂăđĐĎËďŇÍÎěŢŮÓßÔŃńňŠšŔÚŕŰýÝţűŘř"
)


class CodePage(str, Enum):
    """Code pages multiplexed into a token username."""
    BASE = "cp850"
    EXTENDED = "cp852"


@dataclass(frozen=True)
class Glyph:
    """One encoded character: its code page and its single-byte code."""
    codepage: CodePage
    code: int

    def to_bytes(self) -> bytes:
        if self.codepage is CodePage.EXTENDED:
            return bytes((ESCAPE, self.code))
        return bytes((self.code,))

    def to_char(self) -> str:
        return bytes((self.code,)).decode(self.codepage.value)


def _code_in(char: str, codepage: CodePage) -> Optional[int]:
    try:
        return char.encode(codepage.value)[0]
    except UnicodeEncodeError:
        return None


def to_glyph(char: str, errors: str = "strict") -> Glyph:
    """Map one character to its glyph.

    ``errors="strict"`` raises EncodingError for characters neither code page
    can hold; ``errors="replace"`` substitutes ``?``. The escape control
    character itself is never encodable, it would read back as an escape.
    """
    if char in EXTENDED_CHARS:
        return Glyph(CodePage.EXTENDED, char.encode(CodePage.EXTENDED.value)[0])

    code = _code_in(char, CodePage.BASE) if ord(char) != ESCAPE else None
    if code is not None:
        return Glyph(CodePage.BASE, code)

    if errors == "replace":
        return Glyph(CodePage.BASE, REPLACEMENT)
    raise EncodingError(char)


def iter_glyphs(buf: bytes) -> Iterator[Glyph]:
    """Split encoded username bytes into glyphs.

    A trailing escape byte with nothing after it yields no glyph.
    """
    i = 0
    while i < len(buf):
        if buf[i] == ESCAPE:
            if i + 1 < len(buf):
                yield Glyph(CodePage.EXTENDED, buf[i + 1])
            i += 2
        else:
            yield Glyph(CodePage.BASE, buf[i])
            i += 1


def encode_username(username: str, errors: str = "strict") -> bytes:
    """Encode a username into token bytes."""
    if errors not in ("strict", "replace"):
        raise ValueError(f"Unsupported errors mode: {errors!r}")

    # composed form, so "c" + combining caron encodes as one glyph
    username = unicodedata.normalize("NFC", username)
    parts: List[bytes] = [to_glyph(char, errors).to_bytes() for char in username]
    return b"".join(parts)


def decode_username(buf: bytes) -> str:
    """Decode token username bytes back into text."""
    return "".join(glyph.to_char() for glyph in iter_glyphs(buf))
