"""Identity-provider settings (``AUTH_`` prefix, optionally from ``.env``)."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """How bearer tokens are verified.

    Attributes:
        issuer: OIDC issuer URL; its discovery document names the JWKS.
            Empty means no provider is configured.
        audience: Required ``aud`` claim.
        jwks_cache_ttl: Seconds a fetched signing key set stays cached.
        dev_bypass: Allow header-less requests as the development admin.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    issuer: str = ""
    audience: str = "api"
    jwks_cache_ttl: int = Field(default=300, ge=30, le=86400)
    dev_bypass: bool = False

    def is_jwks_configured(self) -> bool:
        """True when tokens can be verified (issuer set, no bypass)."""
        return bool(self.issuer) and not self.dev_bypass


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Process-wide AuthSettings; tests reset it with ``cache_clear()``."""
    return AuthSettings()
