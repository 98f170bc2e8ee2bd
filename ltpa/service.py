"""
LTPA1 token service: generate, validate, refresh and inspect tokens.
"""

import threading
import time
from dataclasses import replace
from typing import Callable, Mapping, Optional

from pydantic import BaseModel

from shared.config import LtpaSettings, get_settings
from shared.errors import InputError, LtpaError, SecretLookupError
from shared.logging import configure_logging, domain_context, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector
from ltpa.codec.token import Token, parse, to_base64
from ltpa.codec.username import decode_username, encode_username
from ltpa.secrets.store import SecretStore
from ltpa.signing.signer import sign, validate_hash
from ltpa.validation.policy import ValidityConfig, ValidityPolicy


UNKNOWN_DOMAIN = "unknown"


class TokenVerificationResponse(BaseModel):
    """Outcome of a non-raising token verification."""
    valid: bool
    username: Optional[str] = None
    code: Optional[str] = None
    error: Optional[str] = None


class LtpaService:
    """Generates and validates LTPA1 tokens for a set of domains.

    Configuration is an immutable ValidityConfig swapped as a whole by the
    setters; each call reads it once, so concurrent setters never leave a
    call with a mix of old and new values.
    """

    def __init__(
        self,
        secrets: Optional[Mapping[str, str]] = None,
        config: Optional[ValidityConfig] = None,
        clock: Optional[Callable[[], float]] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._secrets = SecretStore(secrets)
        self._config = config or ValidityConfig()
        self._config_lock = threading.Lock()
        self._clock = clock or time.time
        self.metrics = metrics or get_metrics_collector("ltpa")
        self.logger = get_logger("ltpa.service")

    @classmethod
    def from_settings(cls, settings: Optional[LtpaSettings] = None, **kwargs) -> "LtpaService":
        """Build a service from environment settings."""
        settings = settings or get_settings()
        configure_logging("ltpa", settings.log_level)
        config = ValidityConfig(
            validity=settings.validity,
            grace_period=settings.grace_period,
            strict_expiration=settings.strict_expiration,
        )
        return cls(secrets=settings.secrets, config=config, **kwargs)

    @property
    def config(self) -> ValidityConfig:
        return self._config

    @property
    def secrets(self) -> SecretStore:
        return self._secrets

    def configure(self, **changes) -> ValidityConfig:
        """Replace some timing settings; returns the new configuration."""
        with self._config_lock:
            self._config = replace(self._config, **changes)
            return self._config

    def set_secrets(self, secrets: Mapping[str, str]) -> None:
        self._secrets.set_secrets(secrets)
        self.logger.info("Secrets replaced", domains=len(self._secrets))

    def set_validity(self, seconds: int) -> None:
        self.configure(validity=seconds)

    def set_grace_period(self, seconds: int) -> None:
        self.configure(grace_period=seconds)

    def set_strict_expiration_validation(self, strict: bool) -> None:
        self.configure(strict_expiration=bool(strict))

    def _now(self) -> int:
        return int(self._clock())

    def _domain_label(self, domain: str) -> str:
        # metric label; unconfigured domains share one series
        return domain if domain in self._secrets else UNKNOWN_DOMAIN

    def _secret_for(self, domain: str) -> bytes:
        lookup = self._secrets.lookup(domain)
        if not lookup.found:
            raise SecretLookupError(details={"domain": domain})
        return lookup.secret

    def generate_user_name_buf(self, username: str, errors: str = "strict") -> bytes:
        """Encode a username for embedding in a token."""
        return encode_username(username, errors)

    def generate(self, user_name_buf: bytes, domain: str, time_start: Optional[int] = None) -> str:
        """Generate a signed token valid from ``time_start`` (default: now)."""
        if not user_name_buf:
            raise InputError("No username provided")

        with domain_context(domain):
            config = self._config
            secret = self._secret_for(domain)
            start = self._now() if time_start is None else int(time_start)
            time_creation, time_expiration = ValidityPolicy(config).window(start)

            token = Token(
                time_creation=time_creation,
                time_expiration=time_expiration,
                username=bytes(user_name_buf),
            )
            sign(token, secret)

            self.metrics.record_generation(domain)
            self.logger.debug(
                "Token generated",
                username_length=len(token.username),
                expires_at=time_expiration
            )
            return to_base64(token)

    def _check(self, token: str, domain: str) -> Token:
        if not token:
            raise InputError("No token provided")
        if not domain:
            raise InputError("No domain provided")

        config = self._config
        secret = self._secret_for(domain)
        parsed = parse(token)
        ValidityPolicy(config).check(parsed, self._now())
        validate_hash(parsed, secret)
        return parsed

    def _checked(self, token: str, domain: str) -> Token:
        with domain_context(domain), self.metrics.time_operation("ltpa_validation_duration_seconds"):
            try:
                parsed = self._check(token, domain)
            except LtpaError as e:
                self.metrics.record_validation(self._domain_label(domain), e.code.lower())
                self.logger.warning(
                    "Token validation failed",
                    code=e.code,
                    error=e.message
                )
                raise

        self.metrics.record_validation(domain, "ok")
        return parsed

    def validate(self, token: str, domain: str) -> None:
        """Validate a token; raises an LtpaError subclass on failure.

        Checks run in this order: inputs, secret lookup, layout, creation
        time, expiration time, magic bytes, signature.
        """
        self._checked(token, domain)

    def verify(self, token: str, domain: str) -> TokenVerificationResponse:
        """Validate without raising."""
        try:
            parsed = self._checked(token, domain)
        except LtpaError as e:
            return TokenVerificationResponse(valid=False, code=e.code, error=e.message)

        return TokenVerificationResponse(valid=True, username=decode_username(parsed.username))

    def refresh(self, token: str, domain: str) -> str:
        """Validate a token and issue a fresh one for the same user."""
        try:
            parsed = self._checked(token, domain)
        except LtpaError as e:
            self.metrics.record_refresh(self._domain_label(domain), e.code.lower())
            raise

        refreshed = self.generate(parsed.username, domain)
        self.metrics.record_refresh(domain, "ok")
        self.logger.info("Token refreshed", domain=domain)
        return refreshed

    def get_user_name_buf(self, token: str) -> bytes:
        """Username bytes from a token. The token is NOT validated."""
        return parse(token).username

    def get_user_name(self, token: str) -> str:
        """Username text from a token. The token is NOT validated."""
        return decode_username(self.get_user_name_buf(token))
