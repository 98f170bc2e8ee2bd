"""Token signing and signature verification."""

from .signer import compute_signature, digest_with_secret, sign, validate_hash

__all__ = ["compute_signature", "digest_with_secret", "sign", "validate_hash"]
