"""SQLAlchemy Core table definitions for the workspace records.

Every table carries ``tenant_id``; the record store filters on it for every
statement. References between records are plain string columns (no foreign
keys): dependents are removed explicitly, deepest first, by the cascade
executor rather than by the database.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, Index, MetaData, String, Table

metadata = MetaData()

admins = Table(
    "admins",
    metadata,
    Column("user_id", String(64), primary_key=True),
    Column("tenant_id", String(63), nullable=False, index=True),
    Column("email", String(255), nullable=False),
)

users = Table(
    "users",
    metadata,
    Column("user_id", String(64), primary_key=True),
    Column("tenant_id", String(63), nullable=False),
    Column("email", String(255), nullable=False),
    Column("role", String(32), nullable=False),
    Column("name", String(255), nullable=False, server_default=""),
    Index("uq_users_tenant_email", "tenant_id", "email", unique=True),
)

projects = Table(
    "projects",
    metadata,
    Column("project_id", String(64), primary_key=True),
    Column("tenant_id", String(63), nullable=False, index=True),
    Column("created_by", String(64), nullable=False, index=True),
    Column("title", String(255), nullable=False, server_default=""),
)

teams = Table(
    "teams",
    metadata,
    Column("team_id", String(64), primary_key=True),
    Column("tenant_id", String(63), nullable=False, index=True),
    Column("created_by", String(64), nullable=False, index=True),
    Column("name", String(255), nullable=False, server_default=""),
)

assignments = Table(
    "assignments",
    metadata,
    Column("assignment_id", String(64), primary_key=True),
    Column("tenant_id", String(63), nullable=False, index=True),
    Column("assigned_by", String(64), nullable=False, index=True),
    Column("project_id", String(64), nullable=True),
    Column("task_ids", JSON, nullable=False, default=list),
)

tasks = Table(
    "tasks",
    metadata,
    Column("task_id", String(64), primary_key=True),
    Column("tenant_id", String(63), nullable=False, index=True),
    Column("title", String(255), nullable=False, server_default=""),
)

WORKSPACE_TABLES: dict[str, Table] = {
    table.name: table for table in (admins, users, projects, teams, assignments, tasks)
}
