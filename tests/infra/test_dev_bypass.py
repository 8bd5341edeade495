"""Tests for development bypass resolution."""

from __future__ import annotations

import pytest

from tabula.infra.auth.dev_bypass import DEV_BYPASS_CLAIMS, resolve_dev_bypass
from tabula.infra.auth.middleware.jwt_auth import extract_principal


@pytest.mark.unit
class TestResolveDevBypass:
    """Test resolve_dev_bypass production lockout and activation."""

    def test_not_requested_returns_false(self) -> None:
        assert resolve_dev_bypass(False) is False

    def test_production_blocks_bypass(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert resolve_dev_bypass(True) is False

    def test_development_allows_bypass(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        assert resolve_dev_bypass(True) is True

    @pytest.mark.parametrize("environment", ["Production", "prod"])
    def test_production_spellings_block_bypass(
        self, monkeypatch: pytest.MonkeyPatch, environment: str
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", environment)
        assert resolve_dev_bypass(True) is False

    def test_default_environment_allows_bypass(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        assert resolve_dev_bypass(True) is True


@pytest.mark.unit
class TestDevBypassClaims:
    def test_claims_form_an_admin_principal(self) -> None:
        principal = extract_principal(dict(DEV_BYPASS_CLAIMS))
        assert principal.tenant_id == "dev-tenant"
        assert principal.has_role("Admin")
