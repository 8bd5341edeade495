"""Signing key lookup for RS256 bearer tokens.

The JWKS endpoint is resolved once from the issuer's OIDC discovery document
(falling back to ``{issuer}/.well-known/jwks.json``); key caching and refresh
on an unknown ``kid`` are delegated to PyJWT's ``PyJWKClient``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from jwt import PyJWKClient

if TYPE_CHECKING:
    from jwt import PyJWK

logger = logging.getLogger(__name__)

_DISCOVERY_TIMEOUT_SECONDS = 5.0


def discover_jwks_uri(
    issuer_url: str,
    *,
    timeout: float = _DISCOVERY_TIMEOUT_SECONDS,
) -> str | None:
    """Resolve ``jwks_uri`` from ``{issuer}/.well-known/openid-configuration``.

    The discovery document is only trusted when its ``issuer`` equals the
    configured one.

    Args:
        issuer_url: Issuer base URL without trailing slash.
        timeout: HTTP timeout in seconds.

    Returns:
        The advertised JWKS URI, or None when discovery is unusable.
    """
    discovery_url = f"{issuer_url}/.well-known/openid-configuration"
    try:
        resp = httpx.get(discovery_url, timeout=timeout)
        resp.raise_for_status()
        doc = resp.json()
    except (httpx.HTTPError, ValueError):
        logger.debug("oidc_discovery_failed", extra={"url": discovery_url}, exc_info=True)
        return None

    advertised_issuer = str(doc.get("issuer", "")).rstrip("/")
    if advertised_issuer != issuer_url:
        logger.warning(
            "oidc_discovery_issuer_mismatch",
            extra={"expected": issuer_url, "discovered": advertised_issuer},
        )
        return None

    jwks_uri = doc.get("jwks_uri")
    if not jwks_uri:
        logger.warning("oidc_discovery_no_jwks_uri", extra={"url": discovery_url})
        return None
    return str(jwks_uri)


class JWKSProvider:
    """Caching signing-key source for one issuer.

    Created once by the auth lifespan hook and stored on ``app.state`` where
    the JWT middleware picks it up.

    Args:
        issuer_url: OIDC issuer base URL.
        cache_ttl: Key set cache lifetime in seconds.

    Raises:
        ValueError: If issuer_url is empty.
    """

    def __init__(self, issuer_url: str, cache_ttl: int = 300) -> None:
        if not issuer_url:
            raise ValueError("OIDC issuer URL is required for JWKS discovery")

        self._issuer_url = issuer_url.rstrip("/")
        self._jwks_uri = discover_jwks_uri(self._issuer_url) or (
            f"{self._issuer_url}/.well-known/jwks.json"
        )
        self._client = PyJWKClient(self._jwks_uri, cache_jwk_set=True, lifespan=cache_ttl)

        logger.info(
            "jwks_provider_initialized",
            extra={"issuer": self._issuer_url, "jwks_uri": self._jwks_uri, "cache_ttl": cache_ttl},
        )

    def get_signing_key_from_jwt(self, token: str) -> PyJWK:
        """Return the key matching the token's ``kid`` header.

        Raises:
            PyJWKClientError: If no key matches even after a refresh.
        """
        return self._client.get_signing_key_from_jwt(token)

    @property
    def jwks_uri(self) -> str:
        return self._jwks_uri

    @property
    def issuer_url(self) -> str:
        return self._issuer_url
