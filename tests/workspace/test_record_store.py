"""Tests for SqlRecordStore against in-memory SQLite."""

from __future__ import annotations

from typing import Any

import pytest

from tabula.domain.workspace.infrastructure import WORKSPACE_TABLES, SqlRecordStore
from tabula.foundation.domain.exceptions import RecordStoreError

TENANT = "acme-corp"
OTHER_TENANT = "globex"


@pytest.fixture()
def store(database: Any) -> SqlRecordStore:
    return SqlRecordStore(database.get_sync_session_factory(), tenant_id=TENANT)


@pytest.mark.integration
class TestFindIn:
    @pytest.mark.asyncio(loop_scope="function")
    async def test_returns_requested_fields(self, store: SqlRecordStore) -> None:
        rows = await store.find_in("users", "email", ["pm1@x.com"], ("user_id", "role"))
        assert rows == [{"user_id": "u-pm1", "role": "ProjectManager"}]

    @pytest.mark.asyncio(loop_scope="function")
    async def test_list_fields_come_back_as_lists(self, store: SqlRecordStore) -> None:
        rows = await store.find_in(
            "assignments", "assigned_by", ["u-pm1"], ("assignment_id", "task_ids")
        )
        assert rows == [{"assignment_id": "a1", "task_ids": ["k1", "k2", "k3"]}]

    @pytest.mark.asyncio(loop_scope="function")
    async def test_scoped_to_tenant(self, database: Any) -> None:
        acme = SqlRecordStore(database.get_sync_session_factory(), tenant_id=TENANT)
        globex = SqlRecordStore(database.get_sync_session_factory(), tenant_id=OTHER_TENANT)

        acme_rows = await acme.find_in("users", "email", ["pm1@x.com"], ("user_id",))
        globex_rows = await globex.find_in("users", "email", ["pm1@x.com"], ("user_id",))

        assert acme_rows == [{"user_id": "u-pm1"}]
        assert globex_rows == [{"user_id": "g-pm1"}]

    @pytest.mark.asyncio(loop_scope="function")
    async def test_empty_values_skip_the_database(self) -> None:
        def explode() -> Any:
            raise AssertionError("session opened")

        store = SqlRecordStore(explode, tenant_id=TENANT)
        assert await store.find_in("users", "email", [], ("user_id",)) == []
        assert await store.delete_in("users", "email", []) == 0

    @pytest.mark.asyncio(loop_scope="function")
    async def test_unknown_category(self, store: SqlRecordStore) -> None:
        with pytest.raises(RecordStoreError) as exc_info:
            await store.find_in("invoices", "id", ["1"], ("id",))
        assert exc_info.value.reason == "unknown category"
        assert exc_info.value.category == "invoices"

    @pytest.mark.asyncio(loop_scope="function")
    async def test_unknown_field(self, store: SqlRecordStore) -> None:
        with pytest.raises(RecordStoreError, match="unknown field 'nickname'"):
            await store.find_in("users", "nickname", ["x"], ("user_id",))

    @pytest.mark.asyncio(loop_scope="function")
    async def test_driver_error_is_wrapped(self, store: SqlRecordStore, database: Any) -> None:
        WORKSPACE_TABLES["tasks"].drop(database.get_sync_engine())

        with pytest.raises(RecordStoreError) as exc_info:
            await store.find_in("tasks", "task_id", ["k1"], ("task_id",))
        assert exc_info.value.operation == "find"
        assert exc_info.value.reason == "OperationalError"


@pytest.mark.integration
class TestDeleteIn:
    @pytest.mark.asyncio(loop_scope="function")
    async def test_returns_rowcount(self, store: SqlRecordStore) -> None:
        deleted = await store.delete_in("tasks", "task_id", ["k1", "k2", "missing"])
        assert deleted == 2
        remaining = await store.find_in("tasks", "task_id", ["k1", "k2", "k3"], ("task_id",))
        assert remaining == [{"task_id": "k3"}]

    @pytest.mark.asyncio(loop_scope="function")
    async def test_does_not_touch_other_tenant(
        self, store: SqlRecordStore, database: Any
    ) -> None:
        assert await store.delete_in("projects", "created_by", ["u-pm1", "g-pm1"]) == 2

        globex = SqlRecordStore(database.get_sync_session_factory(), tenant_id=OTHER_TENANT)
        rows = await globex.find_in("projects", "project_id", ["gp1"], ("project_id",))
        assert rows == [{"project_id": "gp1"}]

    @pytest.mark.asyncio(loop_scope="function")
    async def test_repeat_delete_reports_zero(self, store: SqlRecordStore) -> None:
        await store.delete_in("teams", "team_id", ["t1"])
        assert await store.delete_in("teams", "team_id", ["t1"]) == 0

    @pytest.mark.asyncio(loop_scope="function")
    async def test_driver_error_is_wrapped(self, store: SqlRecordStore, database: Any) -> None:
        WORKSPACE_TABLES["teams"].drop(database.get_sync_engine())

        with pytest.raises(RecordStoreError) as exc_info:
            await store.delete_in("teams", "team_id", ["t1"])
        assert exc_info.value.operation == "delete"
        assert exc_info.value.category == "teams"
