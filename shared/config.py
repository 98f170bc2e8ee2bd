"""
Shared configuration management for the LTPA token library.
"""

from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LtpaSettings(BaseSettings):
    """Token settings read from ``ACCESS_LTPA_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_LTPA_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Token timing, in seconds
    validity: int = Field(default=5400, ge=0)
    grace_period: int = Field(default=300, ge=0)
    strict_expiration: bool = Field(default=False)

    # Domain -> base64 secret, given as a JSON object
    secrets: Dict[str, str] = Field(default_factory=dict)


def get_settings(**overrides) -> LtpaSettings:
    """Get token settings, with keyword overrides taking precedence."""
    return LtpaSettings(**overrides)
