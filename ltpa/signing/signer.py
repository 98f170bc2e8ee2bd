"""
Suffix-keyed SHA-1 signature.

The digest is SHA-1 over the serialized token with the raw secret written
into the trailing 20 signature bytes. This is not HMAC; deployed partner
servers compute exactly this, so it must not change without a new token
version.
"""

from cryptography.hazmat.primitives import constant_time, hashes

from shared.errors import IntegrityError
from ltpa.codec.token import SIGNATURE_LENGTH, Token, serialize


def digest_with_secret(buf: bytes, secret: bytes) -> bytes:
    """SHA-1 of ``buf`` with its last 20 bytes replaced by ``secret``."""
    if len(secret) != SIGNATURE_LENGTH:
        raise ValueError(f"Secret must be {SIGNATURE_LENGTH} bytes")

    keyed = bytearray(buf)
    keyed[-SIGNATURE_LENGTH:] = secret

    digest = hashes.Hash(hashes.SHA1())
    digest.update(bytes(keyed))
    return digest.finalize()


def compute_signature(token: Token, secret: bytes) -> bytes:
    """Return the 20-byte signature of ``token`` under ``secret``.

    A parsed token is hashed over the bytes it arrived as, so tokens from
    servers that pad or case their hex timestamps differently still verify.
    """
    buf = token.source if token.source is not None else serialize(token)
    return digest_with_secret(buf, secret)


def sign(token: Token, secret: bytes) -> Token:
    """Set ``token.signature`` in place and return the token."""
    token.source = None
    token.signature = digest_with_secret(serialize(token), secret)
    return token


def validate_hash(token: Token, secret: bytes) -> None:
    """Raise IntegrityError unless the stored signature matches."""
    expected = compute_signature(token, secret)
    if not constant_time.bytes_eq(expected, bytes(token.signature)):
        raise IntegrityError("Ltpa Token signature doesn't validate")
