"""Tests for JWKSProvider initialization and OIDC discovery."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from tabula.infra.auth.jwks import JWKSProvider, discover_jwks_uri

ISSUER = "https://auth.example.com"


def _discovery_response(doc: dict[str, str]) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = doc
    resp.raise_for_status = MagicMock()
    return resp


@pytest.mark.unit
class TestDiscoverJwksUri:
    @patch("tabula.infra.auth.jwks.httpx.get")
    def test_returns_advertised_uri(self, mock_get: MagicMock) -> None:
        mock_get.return_value = _discovery_response(
            {"issuer": ISSUER, "jwks_uri": f"{ISSUER}/certs"}
        )

        assert discover_jwks_uri(ISSUER) == f"{ISSUER}/certs"
        mock_get.assert_called_once_with(
            f"{ISSUER}/.well-known/openid-configuration", timeout=5.0
        )

    @patch("tabula.infra.auth.jwks.httpx.get")
    def test_issuer_mismatch_is_ignored(self, mock_get: MagicMock) -> None:
        mock_get.return_value = _discovery_response(
            {"issuer": "https://other.example.com", "jwks_uri": "https://other.example.com/k"}
        )
        assert discover_jwks_uri(ISSUER) is None

    @patch("tabula.infra.auth.jwks.httpx.get")
    def test_missing_jwks_uri(self, mock_get: MagicMock) -> None:
        mock_get.return_value = _discovery_response({"issuer": ISSUER})
        assert discover_jwks_uri(ISSUER) is None

    @patch("tabula.infra.auth.jwks.httpx.get")
    def test_http_failure(self, mock_get: MagicMock) -> None:
        mock_get.side_effect = httpx.ConnectError("refused")
        assert discover_jwks_uri(ISSUER) is None

    @patch("tabula.infra.auth.jwks.httpx.get")
    def test_malformed_document(self, mock_get: MagicMock) -> None:
        resp = _discovery_response({})
        resp.json.side_effect = ValueError("not json")
        mock_get.return_value = resp
        assert discover_jwks_uri(ISSUER) is None


@pytest.mark.unit
class TestJWKSProviderInit:
    def test_empty_issuer_url_raises(self) -> None:
        with pytest.raises(ValueError, match="OIDC issuer URL is required"):
            JWKSProvider("")

    @patch("tabula.infra.auth.jwks.discover_jwks_uri", return_value=None)
    def test_falls_back_to_well_known_path(self, _: MagicMock) -> None:
        provider = JWKSProvider(f"{ISSUER}/")
        assert provider.issuer_url == ISSUER
        assert provider.jwks_uri == f"{ISSUER}/.well-known/jwks.json"

    @patch("tabula.infra.auth.jwks.discover_jwks_uri", return_value=f"{ISSUER}/certs")
    def test_uses_discovered_uri(self, _: MagicMock) -> None:
        provider = JWKSProvider(ISSUER)
        assert provider.jwks_uri == f"{ISSUER}/certs"

    @patch("tabula.infra.auth.jwks.discover_jwks_uri", return_value=None)
    @patch("tabula.infra.auth.jwks.PyJWKClient")
    def test_delegates_to_pyjwk_client(self, mock_client_cls: MagicMock, _: MagicMock) -> None:
        provider = JWKSProvider(ISSUER, cache_ttl=600)

        mock_client_cls.assert_called_once_with(
            f"{ISSUER}/.well-known/jwks.json", cache_jwk_set=True, lifespan=600
        )
        provider.get_signing_key_from_jwt("a.b.c")
        mock_client_cls.return_value.get_signing_key_from_jwt.assert_called_once_with("a.b.c")
