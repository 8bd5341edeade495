"""Purge workflow configuration.

Environment Variables:
    PURGE_PRIVILEGED_ROLE: Role the actor must hold (default: Admin)
    PURGE_TARGET_ROLE: Stored role of purgeable users (default: ProjectManager)
    PURGE_TARGET_LABEL: Human-readable name of the target role in messages
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PurgeSettings(BaseSettings):
    """Roles and wording for the Project Manager purge.

    Example:
        >>> PurgeSettings().target_role
        'ProjectManager'
    """

    model_config = SettingsConfigDict(
        env_prefix="PURGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    privileged_role: str = Field(default="Admin", min_length=1)
    target_role: str = Field(default="ProjectManager", min_length=1)
    target_label: str = Field(default="Project Manager", min_length=1)


@lru_cache(maxsize=1)
def get_purge_settings() -> PurgeSettings:
    """Get singleton PurgeSettings instance.

    Clear cache with ``get_purge_settings.cache_clear()`` for testing.
    """
    return PurgeSettings()
