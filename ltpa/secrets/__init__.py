"""
Secret table package.

Holds the domain -> secret mapping used to sign and verify tokens. Secrets
arrive base64-encoded from whoever provisions them (environment, directory
service, vault) and are decoded and length-checked once, when the table is
replaced. Lookups never fall back to a default secret.
"""

from .store import SECRET_LENGTH, SecretLookup, SecretStore, decode_secret

__all__ = ["SECRET_LENGTH", "SecretLookup", "SecretStore", "decode_secret"]
