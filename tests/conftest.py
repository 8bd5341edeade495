"""Shared fixtures: acting principal, workspace records, record stores, app client."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import insert

from tabula.domain.workspace.infrastructure.record_store import SqlRecordStore
from tabula.domain.workspace.infrastructure.tables import WORKSPACE_TABLES, metadata
from tabula.domain.workspace.router import get_record_store
from tabula.foundation.domain.exceptions import RecordStoreError
from tabula.foundation.domain.principal import Principal
from tabula.infra.auth.dependencies import get_current_principal
from tabula.infra.fastapi.app_factory import create_app
from tabula.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    get_database_manager,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator, Sequence

    from fastapi import FastAPI

ACTOR_ID = "6f1c0b5e-8a4f-4b8e-9d3a-2f6c1e7a9b10"
TENANT = "acme-corp"
OTHER_TENANT = "globex"


class InMemoryRecordStore:
    """RecordStorePort over plain dicts that records every call.

    ``fail_on`` holds ``(operation, category)`` pairs that raise
    RecordStoreError instead of touching the data.
    """

    def __init__(self, records: dict[str, list[dict[str, Any]]]) -> None:
        self.records = copy.deepcopy(records)
        self.calls: list[tuple[str, str, str, tuple[str, ...]]] = []
        self.fail_on: set[tuple[str, str]] = set()

    async def find_in(
        self,
        category: str,
        field: str,
        values: Collection[str],
        fields: Sequence[str],
    ) -> list[dict[str, Any]]:
        self.calls.append(("find", category, field, tuple(sorted(values))))
        if ("find", category) in self.fail_on:
            raise RecordStoreError("find", category, "connection reset")
        wanted = set(values)
        return [
            {f: row.get(f) for f in fields}
            for row in self.records.get(category, [])
            if row.get(field) in wanted
        ]

    async def delete_in(self, category: str, field: str, values: Collection[str]) -> int:
        self.calls.append(("delete", category, field, tuple(sorted(values))))
        if ("delete", category) in self.fail_on:
            raise RecordStoreError("delete", category, "connection reset")
        wanted = set(values)
        rows = self.records.get(category, [])
        kept = [row for row in rows if row.get(field) not in wanted]
        self.records[category] = kept
        return len(rows) - len(kept)

    def ids(self, category: str, field: str) -> set[str]:
        return {row[field] for row in self.records.get(category, [])}

    def deletes(self) -> list[str]:
        return [category for op, category, _, _ in self.calls if op == "delete"]


def workspace_records() -> dict[str, list[dict[str, Any]]]:
    """Two Project Managers sharing task k3, plus the actor and a developer.

    pm1 owns 2 projects, 1 team and 1 assignment referencing 3 tasks.
    """
    return {
        "admins": [{"user_id": ACTOR_ID, "email": "actor@x.com"}],
        "users": [
            {"user_id": ACTOR_ID, "email": "actor@x.com", "role": "Admin"},
            {"user_id": "u-pm1", "email": "pm1@x.com", "role": "ProjectManager"},
            {"user_id": "u-pm2", "email": "pm2@x.com", "role": "ProjectManager"},
            {"user_id": "u-dev", "email": "dev@x.com", "role": "Developer"},
        ],
        "projects": [
            {"project_id": "p1", "created_by": "u-pm1"},
            {"project_id": "p2", "created_by": "u-pm1"},
            {"project_id": "p3", "created_by": "u-pm2"},
        ],
        "teams": [
            {"team_id": "t1", "created_by": "u-pm1"},
            {"team_id": "t2", "created_by": "u-pm2"},
        ],
        "assignments": [
            {"assignment_id": "a1", "assigned_by": "u-pm1", "task_ids": ["k1", "k2", "k3"]},
            {"assignment_id": "a2", "assigned_by": "u-pm2", "task_ids": ["k3", "k4"]},
        ],
        "tasks": [
            {"task_id": "k1"},
            {"task_id": "k2"},
            {"task_id": "k3"},
            {"task_id": "k4"},
        ],
    }


def seed(manager: DatabaseManager, records: dict[str, list[dict[str, Any]]], tenant: str) -> None:
    with manager.get_sync_engine().begin() as conn:
        for category, rows in records.items():
            if rows:
                conn.execute(
                    insert(WORKSPACE_TABLES[category]),
                    [{**row, "tenant_id": tenant} for row in rows],
                )


@pytest.fixture()
def actor() -> Principal:
    """Authenticated admin whose stored email is actor@x.com."""
    return Principal(
        subject=ACTOR_ID,
        tenant_id=TENANT,
        user_id=UUID(ACTOR_ID),
        roles=("Admin",),
        email="actor@x.com",
    )


@pytest.fixture()
def records() -> dict[str, list[dict[str, Any]]]:
    return workspace_records()


@pytest.fixture()
def memory_store(records: dict[str, list[dict[str, Any]]]) -> InMemoryRecordStore:
    return InMemoryRecordStore(records)


@pytest.fixture()
def database(records: dict[str, list[dict[str, Any]]]) -> Iterator[DatabaseManager]:
    """In-memory SQLite with the workspace schema.

    The acting tenant gets ``records``; a second tenant gets a Project
    Manager with the same email as pm1 and a project of its own.
    """
    manager = DatabaseManager(DatabaseSettings(url="sqlite://"))
    metadata.create_all(manager.get_sync_engine())
    seed(manager, records, TENANT)
    seed(
        manager,
        {
            "users": [{"user_id": "g-pm1", "email": "pm1@x.com", "role": "ProjectManager"}],
            "projects": [{"project_id": "gp1", "created_by": "g-pm1"}],
        },
        OTHER_TENANT,
    )
    yield manager
    manager.dispose()


@pytest.fixture()
def make_store() -> type[InMemoryRecordStore]:
    """The store class itself, for tests that need custom records."""
    return InMemoryRecordStore


# Entry-point names excluded in integration tests (no identity provider,
# global logging left alone).
TEST_EXCLUDE_NAMES = frozenset({"jwt_auth", "auth", "observability"})


@pytest.fixture()
def app(monkeypatch: pytest.MonkeyPatch, database: DatabaseManager) -> Iterator[FastAPI]:
    """Discovered application wired to the seeded SQLite database.

    Authentication is replaced by dependency overrides; tests that need an
    anonymous or differently-roled caller replace ``get_current_principal``.
    """
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    get_database_manager.cache_clear()
    application = create_app(exclude_names=TEST_EXCLUDE_NAMES)
    application.dependency_overrides[get_record_store] = lambda: SqlRecordStore(
        database.get_sync_session_factory(), tenant_id=TENANT
    )
    yield application
    get_database_manager.cache_clear()


@pytest.fixture()
def as_actor(app: FastAPI, actor: Principal) -> Principal:
    """Authenticate every request of ``client`` as the admin actor."""
    app.dependency_overrides[get_current_principal] = lambda: actor
    return actor


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    """TestClient for the application (lifespan hooks executed)."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
