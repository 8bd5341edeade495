"""Unit tests for tabula.foundation.domain.exceptions."""

from __future__ import annotations

import pytest

from tabula.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BadInputError,
    DomainError,
    RecordStoreError,
)


class TestDomainError:
    @pytest.mark.unit
    def test_message_and_context(self) -> None:
        exc = DomainError("Operation failed", {"user_id": "123"})
        assert str(exc) == "Operation failed (user_id=123)"
        assert exc.message == "Operation failed"
        assert exc.context == {"user_id": "123"}
        assert exc.error_code == "DOMAIN_ERROR"

    @pytest.mark.unit
    def test_context_defaults_empty(self) -> None:
        assert DomainError("x").context == {}

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "cls", [BadInputError, AuthenticationError, AuthorizationError, RecordStoreError]
    )
    def test_hierarchy(self, cls: type[DomainError]) -> None:
        assert issubclass(cls, DomainError)


class TestBadInputError:
    @pytest.mark.unit
    def test_message_names_field(self) -> None:
        exc = BadInputError("identifiers", "array is required and cannot be empty.")
        assert exc.message == "Bad Request: 'identifiers' array is required and cannot be empty."
        assert exc.context == {
            "field": "identifiers",
            "reason": "array is required and cannot be empty.",
        }
        assert exc.error_code == "BAD_INPUT"


class TestAuthenticationError:
    @pytest.mark.unit
    def test_defaults(self) -> None:
        exc = AuthenticationError("Authentication required")
        assert exc.auth_error == "invalid_token"
        assert exc.error_code == "AUTHENTICATION_ERROR"

    @pytest.mark.unit
    def test_custom_error_code(self) -> None:
        exc = AuthenticationError("expired", error_code="TOKEN_EXPIRED")
        assert exc.error_code == "TOKEN_EXPIRED"
        assert AuthenticationError.error_code == "AUTHENTICATION_ERROR"


class TestRecordStoreError:
    @pytest.mark.unit
    def test_attributes(self) -> None:
        exc = RecordStoreError("delete", "tasks", "connection reset")
        assert exc.operation == "delete"
        assert exc.category == "tasks"
        assert exc.reason == "connection reset"
        assert exc.message == "Record store delete on 'tasks' failed: connection reset"
        assert exc.context == {"operation": "delete", "category": "tasks"}
