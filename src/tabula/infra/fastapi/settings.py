"""Settings read by :func:`tabula.infra.fastapi.create_app`."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Comma-separated in the environment rather than JSON
_CsvList = Annotated[list[str], NoDecode]


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class CORSSettings(BaseSettings):
    """Cross-origin policy for browser admin consoles (``CORS_`` prefix).

    List fields accept comma-separated environment values, e.g.
    ``CORS_ALLOW_ORIGINS=https://admin.example.com,https://ops.example.com``.
    """

    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    allow_origins: _CsvList = Field(default=["*"])
    # The purge request is a DELETE with a JSON body
    allow_methods: _CsvList = Field(default=["GET", "DELETE", "OPTIONS"])
    allow_headers: _CsvList = Field(default=["Authorization", "Content-Type", "X-Request-ID"])
    allow_credentials: bool = False
    expose_headers: _CsvList = Field(default=["X-Request-ID"])

    @field_validator(
        "allow_origins", "allow_methods", "allow_headers", "expose_headers", mode="before"
    )
    @classmethod
    def _parse_lists(cls, v: Any) -> Any:
        return _split_csv(v)

    @model_validator(mode="after")
    def _no_credentials_for_any_origin(self) -> CORSSettings:
        if self.allow_credentials and "*" in self.allow_origins:
            msg = "CORS allow_credentials requires explicit origins, not '*'"
            raise ValueError(msg)
        return self


def _installed_version() -> str:
    try:
        return version("tabula")
    except PackageNotFoundError:
        return "0.0.0"


class AppSettings(BaseSettings):
    """Application identity and discovery switches (``APP_`` prefix).

    Attributes:
        title: OpenAPI title.
        version: OpenAPI version; defaults to the installed distribution's.
        description: OpenAPI description.
        debug: Starlette debug mode.
        cors: Cross-origin policy.
        disabled_entry_points: Entry-point names to leave out of every
            discovery group, e.g. ``APP_DISABLED_ENTRY_POINTS=jwt_auth,auth``.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    title: str = "Tabula"
    version: str = Field(default_factory=_installed_version)
    description: str = "Tenant workspace administration API"
    debug: bool = False
    cors: CORSSettings = Field(default_factory=CORSSettings)
    disabled_entry_points: Annotated[frozenset[str], NoDecode] = frozenset()

    @field_validator("disabled_entry_points", mode="before")
    @classmethod
    def _parse_names(cls, v: Any) -> Any:
        return _split_csv(v)
