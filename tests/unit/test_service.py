"""
Unit tests for LtpaService.
"""

import threading
from unittest.mock import MagicMock

import pytest

from shared.config import LtpaSettings
from shared.errors import (
    FormatError,
    InputError,
    IntegrityError,
    SecretLookupError,
    TemporalError,
)
from shared.logging import domain_var
from shared.test_helpers import FixedClock, TestDataFactory, decode_token, flip_bit, truncate_token
from ltpa.service import LtpaService, TokenVerificationResponse
from ltpa.validation.policy import ValidityConfig

NOW = 1_700_000_000
DOMAIN = TestDataFactory.DOMAIN


class TestLtpaService:
    """Test cases for LtpaService."""

    @pytest.fixture
    def clock(self):
        """Clock frozen at NOW."""
        return FixedClock(NOW)

    @pytest.fixture
    def metrics(self):
        """Metrics on a private registry."""
        return TestDataFactory.create_metrics()

    @pytest.fixture
    def service(self, clock, metrics):
        """Service with the example secrets."""
        return LtpaService(secrets=TestDataFactory.create_secrets(), clock=clock, metrics=metrics)

    @pytest.fixture
    def user_buf(self, service):
        return service.generate_user_name_buf(TestDataFactory.USERNAME)

    @pytest.fixture
    def token(self, service, user_buf):
        """Token issued now for example.com."""
        return service.generate(user_buf, DOMAIN)

    def test_known_tokens(self, service, user_buf):
        """Generation reproduces the reference tokens."""
        for known in TestDataFactory.create_known_tokens():
            service.set_validity(known.validity)
            service.set_grace_period(known.grace_period)

            assert service.generate(user_buf, DOMAIN, known.time_start) == known.base64

    def test_generate_and_validate(self, service, token):
        """A freshly generated token validates."""
        service.validate(token, DOMAIN)

    def test_generate_time_start_zero(self, service, user_buf):
        """A start of 0 is honoured rather than replaced by now."""
        service.set_grace_period(0)
        token = service.generate(user_buf, DOMAIN, time_start=0)

        assert bytes(decode_token(token)[4:12]).rstrip(b"\x00") == b"0"

    def test_generate_unknown_domain(self, service, user_buf):
        with pytest.raises(SecretLookupError, match="No such server secret exists"):
            service.generate(user_buf, "unknown.example.com")

    def test_generate_empty_username(self, service):
        with pytest.raises(InputError, match="No username provided"):
            service.generate(b"", DOMAIN)

    def test_validate_missing_token(self, service):
        with pytest.raises(InputError, match="No token provided"):
            service.validate("", DOMAIN)

    def test_validate_missing_domain(self, service, token):
        with pytest.raises(InputError, match="No domain provided"):
            service.validate(token, "")

    def test_validate_unknown_domain(self, service, token):
        """Unknown domains are lookup failures, also a builtin LookupError."""
        with pytest.raises(LookupError, match="No such server secret exists"):
            service.validate(token, "blabla.example.com")

    def test_validate_too_short(self, service, token):
        with pytest.raises(FormatError, match="Ltpa Token too short"):
            service.validate(truncate_token(token, 40), DOMAIN)

    def test_validate_wrong_secret(self, service, user_buf):
        """A token signed for another domain fails the signature check."""
        token = service.generate(user_buf, TestDataFactory.OTHER_DOMAIN)

        with pytest.raises(IntegrityError, match="Ltpa Token signature doesn't validate"):
            service.validate(token, DOMAIN)

    @pytest.mark.parametrize("offset", [-1, -10, -20])
    def test_tampered_signature(self, service, token, offset):
        with pytest.raises(IntegrityError):
            service.validate(flip_bit(token, offset), DOMAIN)

    @pytest.mark.parametrize("offset", [0, 1, 2, 3])
    def test_tampered_magic(self, service, token, offset):
        with pytest.raises(FormatError, match="Incorrect magic string"):
            service.validate(flip_bit(token, offset), DOMAIN)

    @pytest.mark.parametrize("offset", [11, 19, 20, 25])
    def test_tampered_body(self, service, token, offset):
        """Changing timestamps or username breaks the signature."""
        with pytest.raises(IntegrityError):
            service.validate(flip_bit(token, offset), DOMAIN)

    @pytest.mark.parametrize("offset", [4, 12])
    @pytest.mark.parametrize("strict", [False, True])
    def test_unreadable_timestamp(self, service, token, offset, strict):
        """A timestamp byte turned into a non-hex letter fails on signature, not on format."""
        service.set_strict_expiration_validation(strict)

        with pytest.raises(IntegrityError, match="Ltpa Token signature doesn't validate"):
            service.validate(flip_bit(token, offset, 6), DOMAIN)

    def test_expiry_boundary(self, service, clock, token):
        """Valid up to creation + validity + 2 * grace, inclusive."""
        clock.advance(5400 + 300)
        service.validate(token, DOMAIN)

        clock.advance(1)
        with pytest.raises(TemporalError, match="Ltpa Token has expired"):
            service.validate(token, DOMAIN)

    def test_not_yet_valid(self, service, user_buf):
        """Tokens starting more than two grace periods ahead are rejected."""
        token = service.generate(user_buf, DOMAIN, NOW + 601)

        with pytest.raises(TemporalError, match="Ltpa Token not yet valid"):
            service.validate(token, DOMAIN)

    def test_not_yet_valid_boundary(self, service, user_buf):
        """Creation minus grace equal to now is still accepted."""
        token = service.generate(user_buf, DOMAIN, NOW + 600)

        service.validate(token, DOMAIN)

    def test_expired_forgery_reports_expiry(self, service, user_buf):
        """Time checks run before the signature check."""
        token = flip_bit(service.generate(user_buf, DOMAIN, 1000), -1)

        with pytest.raises(TemporalError):
            service.validate(token, DOMAIN)

    def test_strict_accepts_what_lenient_rejects(self, service, user_buf):
        service.set_validity(10800)
        token = service.generate(user_buf, DOMAIN, NOW - 7200)
        service.set_validity(5400)

        with pytest.raises(TemporalError):
            service.validate(token, DOMAIN)

        service.set_strict_expiration_validation(True)
        service.validate(token, DOMAIN)

    def test_strict_rejects_what_lenient_accepts(self, service, user_buf):
        service.set_validity(3600)
        token = service.generate(user_buf, DOMAIN, NOW - 5400)
        service.set_validity(5400)

        service.validate(token, DOMAIN)

        service.set_strict_expiration_validation(True)
        with pytest.raises(TemporalError, match="Ltpa Token has expired"):
            service.validate(token, DOMAIN)

    def test_refresh(self, service, clock, token):
        """Refresh issues a new window for the same user."""
        clock.advance(600)
        refreshed = service.refresh(token, DOMAIN)

        assert refreshed != token
        assert len(decode_token(refreshed)) == 40 + len(TestDataFactory.USERNAME)
        assert service.get_user_name(refreshed) == TestDataFactory.USERNAME
        service.validate(refreshed, DOMAIN)

    def test_refresh_invalid(self, service, user_buf):
        token = service.generate(user_buf, TestDataFactory.OTHER_DOMAIN)

        with pytest.raises(IntegrityError, match="Ltpa Token signature doesn't validate"):
            service.refresh(token, DOMAIN)

    def test_get_user_name_without_validation(self, service, user_buf):
        """Username access works on tokens that would not validate."""
        token = service.generate(user_buf, DOMAIN, 1000)

        assert service.get_user_name(token) == TestDataFactory.USERNAME
        assert service.get_user_name_buf(token) == b"My Test User"

    @pytest.mark.parametrize("offset", [4, 12])
    def test_get_user_name_unreadable_timestamp(self, service, token, offset):
        """Username access does not look at the timestamps."""
        damaged = flip_bit(token, offset, 6)

        assert service.get_user_name(damaged) == TestDataFactory.USERNAME
        assert service.get_user_name_buf(damaged) == b"My Test User"

    def test_get_user_name_too_short(self, service, token):
        with pytest.raises(FormatError):
            service.get_user_name(truncate_token(token, 30))

    def test_verify(self, service, token):
        """verify reports the outcome instead of raising."""
        assert service.verify(token, DOMAIN) == TokenVerificationResponse(
            valid=True, username=TestDataFactory.USERNAME
        )

        failed = service.verify(flip_bit(token, -1), DOMAIN)
        assert failed.valid is False
        assert failed.code == "INTEGRITY_ERROR"
        assert failed.error == "Ltpa Token signature doesn't validate"
        assert failed.username is None

    def test_metrics(self, service, metrics, token):
        """Outcomes are counted per domain and status."""
        service.validate(token, DOMAIN)
        with pytest.raises(IntegrityError):
            service.validate(flip_bit(token, -1), DOMAIN)
        service.refresh(token, DOMAIN)

        registry = metrics.registry
        assert registry.get_sample_value(
            "ltpa_token_validations_total", {"domain": DOMAIN, "status": "ok"}
        ) == 2
        assert registry.get_sample_value(
            "ltpa_token_validations_total", {"domain": DOMAIN, "status": "integrity_error"}
        ) == 1
        assert registry.get_sample_value(
            "ltpa_token_refreshes_total", {"domain": DOMAIN, "status": "ok"}
        ) == 1
        assert registry.get_sample_value("ltpa_tokens_generated_total", {"domain": DOMAIN}) == 2
        assert registry.get_sample_value("ltpa_validation_duration_seconds_count") == 3

    def test_metrics_unknown_domain(self, service, metrics, token):
        """Unconfigured domains are counted under one label."""
        for domain in ("a.example.org", "b.example.org"):
            with pytest.raises(SecretLookupError):
                service.validate(token, domain)
        with pytest.raises(SecretLookupError):
            service.refresh(token, "c.example.org")

        registry = metrics.registry
        assert registry.get_sample_value(
            "ltpa_token_validations_total", {"domain": "unknown", "status": "lookup_error"}
        ) == 3
        assert registry.get_sample_value(
            "ltpa_token_refreshes_total", {"domain": "unknown", "status": "lookup_error"}
        ) == 1
        assert registry.get_sample_value(
            "ltpa_token_validations_total", {"domain": "a.example.org", "status": "lookup_error"}
        ) is None

    def test_logs_carry_domain(self, service, token):
        """Log events inside an operation see the domain in logging context."""
        seen = []
        service.logger = MagicMock()
        service.logger.warning.side_effect = lambda *args, **kwargs: seen.append(domain_var.get())
        service.logger.debug.side_effect = lambda *args, **kwargs: seen.append(domain_var.get())

        with pytest.raises(IntegrityError):
            service.validate(flip_bit(token, -1), DOMAIN)
        service.generate(b"user", TestDataFactory.OTHER_DOMAIN)

        assert seen == [DOMAIN, TestDataFactory.OTHER_DOMAIN]
        assert domain_var.get() is None

    def test_configure_swaps_whole_config(self, service):
        """Setters replace the configuration object instead of mutating it."""
        before = service.config
        service.set_grace_period(0)

        assert before.grace_period == 300
        assert service.config == ValidityConfig(validity=5400, grace_period=0)

    def test_configure_rejects_negative(self, service):
        with pytest.raises(ValueError):
            service.set_validity(-1)
        assert service.config.validity == 5400

    def test_concurrent_setters(self, service):
        """Concurrent updates leave a consistent configuration."""
        def worker(value):
            for _ in range(200):
                service.configure(validity=value, grace_period=value)

        threads = [threading.Thread(target=worker, args=(v,)) for v in (10, 20, 30)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert service.config.validity == service.config.grace_period

    def test_set_secrets(self, service, token):
        """Replacing secrets drops domains that are no longer listed."""
        service.set_secrets({"other.example.com": TestDataFactory.create_secrets()[DOMAIN]})

        with pytest.raises(SecretLookupError):
            service.validate(token, DOMAIN)

    def test_from_settings(self, clock, metrics):
        """Services can be built from settings."""
        settings = LtpaSettings(
            validity=10,
            grace_period=0,
            strict_expiration=True,
            secrets=TestDataFactory.create_secrets(),
        )
        service = LtpaService.from_settings(settings, clock=clock, metrics=metrics)

        assert service.config == ValidityConfig(validity=10, grace_period=0, strict_expiration=True)
        assert service.secrets.domains == [DOMAIN, TestDataFactory.OTHER_DOMAIN]
