"""
Token validity package.

Checks applied to a parsed token before its signature is verified:

- creation time not in the future (beyond the grace period),
- expiration, either recomputed from our validity settings or, in strict
  mode, taken from the token itself,
- the LTPA1 magic bytes.

Time checks come first, so an expired forged token reports expiry rather
than a bad signature. Callers rely on that precedence.
"""

from .policy import (
    DEFAULT_GRACE_PERIOD,
    DEFAULT_VALIDITY,
    ValidityConfig,
    ValidityPolicy,
    validate_time_creation,
    validate_time_expiration,
    validate_version,
)

__all__ = [
    "DEFAULT_GRACE_PERIOD",
    "DEFAULT_VALIDITY",
    "ValidityConfig",
    "ValidityPolicy",
    "validate_time_creation",
    "validate_time_expiration",
    "validate_version",
]
