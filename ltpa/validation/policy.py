"""
Time and version checks for parsed tokens.
"""

import time
from dataclasses import dataclass
from typing import Optional

from shared.errors import FormatError, TemporalError
from ltpa.codec.token import MAGIC, Token

DEFAULT_VALIDITY = 5400
DEFAULT_GRACE_PERIOD = 300


@dataclass(frozen=True)
class ValidityConfig:
    """Timing rules applied when generating and validating tokens."""
    validity: int = DEFAULT_VALIDITY
    grace_period: int = DEFAULT_GRACE_PERIOD
    strict_expiration: bool = False

    def __post_init__(self):
        if self.validity < 0:
            raise ValueError("validity must not be negative")
        if self.grace_period < 0:
            raise ValueError("grace_period must not be negative")


def _now(now: Optional[int]) -> int:
    return int(time.time()) if now is None else now


def validate_version(token: Token) -> None:
    if token.version != MAGIC:
        raise FormatError("Incorrect magic string", details={"version": token.version.hex()})


def validate_time_creation(token: Token, grace_period: int, now: Optional[int] = None) -> None:
    if token.time_creation is None:
        return
    if token.time_creation - grace_period > _now(now):
        raise TemporalError("Ltpa Token not yet valid")


def validate_time_expiration(
    token: Token,
    validity: int,
    grace_period: int,
    strict: bool = False,
    now: Optional[int] = None,
) -> None:
    """Check expiry.

    Strict mode trusts the expiration stored in the token. Lenient mode
    recomputes it from the creation time and our own validity, adding the
    grace period twice: once for the back-dating done at generation and once
    more as tolerance here.

    A timestamp field without hex digits is skipped; the signature check
    rejects such tokens.
    """
    if strict:
        expiration = token.time_expiration
    elif token.time_creation is None:
        expiration = None
    else:
        expiration = token.time_creation + validity + 2 * grace_period

    if expiration is not None and expiration < _now(now):
        raise TemporalError("Ltpa Token has expired")


class ValidityPolicy:
    """Applies a ValidityConfig to tokens."""

    def __init__(self, config: Optional[ValidityConfig] = None):
        self.config = config or ValidityConfig()

    def window(self, start: int):
        """Creation and expiration times for a token whose validity begins at ``start``."""
        return (
            start - self.config.grace_period,
            start + self.config.validity + self.config.grace_period,
        )

    def check(self, token: Token, now: Optional[int] = None) -> None:
        """Run creation, expiration and version checks, in that order."""
        now = _now(now)
        validate_time_creation(token, self.config.grace_period, now)
        validate_time_expiration(
            token,
            self.config.validity,
            self.config.grace_period,
            self.config.strict_expiration,
            now,
        )
        validate_version(token)
