"""SQLAlchemy engine and session factory for the workspace tables.

Store calls are short synchronous transactions run through
``asyncio.to_thread``, so only a sync engine exists. ``DATABASE_URL`` wins
over the individual PostgreSQL fields; a SQLite URL (used by the tests and
local runs) gets one shared connection so an in-memory database outlives
each session.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL, Engine, create_engine, make_url, text
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


class DatabaseSettings(BaseSettings):
    """Connection and pool settings (``DATABASE_`` prefix, optionally ``.env``).

    ``create_schema`` asks the workspace lifespan hook to create missing
    tables at startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    url: str | None = Field(default=None, repr=False)
    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = Field(default="postgres", repr=False)
    name: str = "app"

    pool_size: int = Field(default=5, ge=1, le=100)
    max_overflow: int = Field(default=5, ge=0, le=100)
    pool_timeout: int = Field(default=30, ge=1, le=300)
    pool_recycle: int = Field(default=3600, ge=60, le=86400)
    echo: bool = False
    create_schema: bool = False

    @model_validator(mode="after")
    def _url_parses(self) -> DatabaseSettings:
        try:
            make_url(self.database_url)
        except ArgumentError as exc:
            msg = f"Invalid database connection URL: {exc}"
            raise ValueError(msg) from exc
        return self

    @property
    def database_url(self) -> str:
        if self.url:
            return self.url
        return URL.create(
            "postgresql+psycopg",
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.name,
        ).render_as_string(hide_password=False)

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.database_url).get_backend_name() == "sqlite"


class DatabaseManager:
    """Lazily builds one engine and session factory; ``dispose()`` resets both."""

    def __init__(self, settings: DatabaseSettings) -> None:
        self.settings = settings
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    def _engine_options(self) -> dict[str, Any]:
        s = self.settings
        if s.is_sqlite:
            return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        return {
            "pool_size": s.pool_size,
            "max_overflow": s.max_overflow,
            "pool_timeout": s.pool_timeout,
            "pool_recycle": s.pool_recycle,
            "pool_pre_ping": True,
        }

    def get_sync_engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(
                self.settings.database_url, echo=self.settings.echo, **self._engine_options()
            )
        return self._engine

    def get_sync_session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                self.get_sync_engine(), expire_on_commit=False, autoflush=False
            )
        return self._session_factory

    def ping(self) -> None:
        """Run ``SELECT 1``; connectivity errors propagate."""
        with self.get_sync_engine().connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        """Close pooled connections. Idempotent."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None


@lru_cache(maxsize=1)
def get_database_manager() -> DatabaseManager:
    """Process-wide manager built from the environment; reset with ``cache_clear()``."""
    return DatabaseManager(DatabaseSettings())


def get_sync_session_factory() -> sessionmaker[Session]:
    """Session factory of the process-wide manager."""
    return get_database_manager().get_sync_session_factory()
