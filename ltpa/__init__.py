"""LTPA1 single sign-on token generation and validation.

Typical use::

    import ltpa

    ltpa.set_secrets({"example.com": "AAECAwQFBgcICQoLDA0ODxAREhM="})
    token = ltpa.generate(ltpa.generate_user_name_buf("My Test User"), "example.com")
    ltpa.validate(token, "example.com")

Failures raise subclasses of ``shared.errors.LtpaError``.
"""

from shared.errors import (
    EncodingError,
    FormatError,
    InputError,
    IntegrityError,
    LtpaError,
    SecretLookupError,
    TemporalError,
)

from .api import (
    generate,
    generate_user_name_buf,
    get_service,
    get_user_name,
    get_user_name_buf,
    init_service,
    refresh,
    set_grace_period,
    set_secrets,
    set_strict_expiration_validation,
    set_validity,
    validate,
    verify,
)
from .service import LtpaService, TokenVerificationResponse
from .validation.policy import ValidityConfig

__all__ = [
    "generate",
    "generate_user_name_buf",
    "get_service",
    "get_user_name",
    "get_user_name_buf",
    "init_service",
    "refresh",
    "set_grace_period",
    "set_secrets",
    "set_strict_expiration_validation",
    "set_validity",
    "validate",
    "verify",
    "LtpaService",
    "TokenVerificationResponse",
    "ValidityConfig",
    "EncodingError",
    "FormatError",
    "InputError",
    "IntegrityError",
    "LtpaError",
    "SecretLookupError",
    "TemporalError",
]
