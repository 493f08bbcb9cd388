"""
Environment-driven settings for the Todo API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=False, extra="ignore", env_file=".env"
    )

    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=1, le=65535)

    todo_backend: Literal["file", "mongo"] = "file"
    todo_data_file: str = "todos.json"

    mongodb_uri: Optional[str] = None
    mongodb_database: str = "todo_app"

    cors_origins: str = "*"
    todo_debug: bool = False

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
