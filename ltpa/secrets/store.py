"""
Domain-keyed secret table for token signing.
"""

import base64
import binascii
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional

SECRET_LENGTH = 20


@dataclass(frozen=True)
class SecretLookup:
    """Result of a secret lookup; ``secret`` is None when the domain is unknown."""
    domain: str
    secret: Optional[bytes] = None

    @property
    def found(self) -> bool:
        return self.secret is not None


def decode_secret(domain: str, encoded: str) -> bytes:
    """Decode a base64 secret and check it is exactly 20 bytes long."""
    try:
        raw = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Secret for domain '{domain}' is not valid base64") from e

    if len(raw) != SECRET_LENGTH:
        raise ValueError(
            f"Secret for domain '{domain}' must decode to {SECRET_LENGTH} bytes, got {len(raw)}"
        )
    return raw


class SecretStore:
    """Replace-all mapping from domain to raw 20-byte secret."""

    def __init__(self, secrets: Optional[Mapping[str, str]] = None):
        self._lock = threading.Lock()
        self._secrets: Mapping[str, bytes] = MappingProxyType({})
        if secrets:
            self.set_secrets(secrets)

    def set_secrets(self, secrets: Mapping[str, str]) -> None:
        """Replace the whole table. Nothing changes if any secret is rejected."""
        decoded: Dict[str, bytes] = {
            domain: decode_secret(domain, encoded) for domain, encoded in secrets.items()
        }
        with self._lock:
            self._secrets = MappingProxyType(decoded)

    def lookup(self, domain: str) -> SecretLookup:
        return SecretLookup(domain=domain, secret=self._secrets.get(domain))

    @property
    def domains(self):
        return sorted(self._secrets)

    def __contains__(self, domain: str) -> bool:
        return domain in self._secrets

    def __len__(self) -> int:
        return len(self._secrets)
