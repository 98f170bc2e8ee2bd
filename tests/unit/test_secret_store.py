"""
Unit tests for SecretStore.
"""

import base64

import pytest

from shared.test_helpers import TestDataFactory
from ltpa.secrets.store import SecretStore, decode_secret


class TestSecretStore:
    """Test cases for SecretStore."""

    @pytest.fixture
    def store(self):
        """Store holding the example secrets."""
        return SecretStore(TestDataFactory.create_secrets())

    def test_lookup_found(self, store):
        """Known domains return the decoded secret."""
        lookup = store.lookup("example.com")

        assert lookup.found is True
        assert lookup.secret == bytes(range(20))

    def test_lookup_missing(self, store):
        """Unknown domains return an empty result, never a default secret."""
        lookup = store.lookup("nope.example.com")

        assert lookup.found is False
        assert lookup.secret is None
        assert lookup.domain == "nope.example.com"

    def test_set_secrets_replaces_everything(self, store):
        """Setting secrets replaces the table rather than merging."""
        store.set_secrets({"other.example.com": base64.b64encode(bytes(20)).decode()})

        assert "example.com" not in store
        assert store.domains == ["other.example.com"]
        assert len(store) == 1

    def test_rejected_update_keeps_old_table(self, store):
        """A bad secret leaves the previous table in place."""
        with pytest.raises(ValueError):
            store.set_secrets({"a.example.com": "AAAA", "example.com": TestDataFactory.create_secrets()["example.com"]})

        assert store.domains == ["example.com", "invalid.example.com"]

    def test_decode_secret_wrong_length(self):
        """Secrets must decode to 20 bytes."""
        with pytest.raises(ValueError, match="20 bytes"):
            decode_secret("example.com", base64.b64encode(bytes(16)).decode())

    def test_decode_secret_not_base64(self):
        with pytest.raises(ValueError, match="not valid base64"):
            decode_secret("example.com", "***")

    def test_empty_store(self):
        assert len(SecretStore()) == 0
