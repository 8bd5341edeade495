"""Integration tests: RFC 7807 error responses around the purge endpoint."""

from __future__ import annotations

import dataclasses

import pytest

from tabula.infra.auth.dependencies import get_current_principal

PATH = "/admin/project-managers"


@pytest.mark.integration
class TestAuthenticationError:
    """Missing principal → 401 with RFC 7807 problem details."""

    def test_returns_401(self, client) -> None:
        resp = client.request("DELETE", PATH, json={"identifiers": ["pm1@x.com"]})
        assert resp.status_code == 401
        body = resp.json()
        assert body["type"] == "/errors/missing-principal"
        assert body["title"] == "Unauthorized"
        assert body["error_code"] == "MISSING_PRINCIPAL"
        assert body["status"] == 401
        assert body["instance"] == PATH
        assert resp.headers["WWW-Authenticate"] == 'Bearer realm="API", error="invalid_token"'


@pytest.mark.integration
class TestAuthorizationError:
    """Principal without the privileged role → 403 problem details."""

    def test_returns_403(self, app, client, actor) -> None:
        app.dependency_overrides[get_current_principal] = lambda: dataclasses.replace(
            actor, roles=()
        )
        resp = client.request("DELETE", PATH, json={"identifiers": ["pm1@x.com"]})
        assert resp.status_code == 403
        body = resp.json()
        assert body["type"] == "/errors/forbidden"
        assert body["context"] == {
            "required_role": "Admin",
            "principal_id": actor.subject,
        }


@pytest.mark.integration
class TestPurgeContractBodies:
    """Failures after authorization use the purge body, not problem details."""

    def test_bad_input_is_not_problem_json(self, client, as_actor) -> None:
        resp = client.request("DELETE", PATH, json={"identifiers": []})
        assert resp.status_code == 400
        assert resp.headers["content-type"] == "application/json"
        assert resp.json()["success"] is False


@pytest.mark.integration
class TestRequestIdOnErrors:
    def test_problem_response_carries_request_id(self, client) -> None:
        resp = client.request("DELETE", PATH, json={"identifiers": ["pm1@x.com"]})
        assert resp.status_code == 401
        assert resp.headers["X-Request-ID"]
