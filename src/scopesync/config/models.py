"""Pydantic configuration models for ScopeSync."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class StorageConfig(BaseModel):
    """Object store configuration."""

    backend: Literal["sqlite", "memory"] = "sqlite"
    data_directory: Path = Field(default_factory=lambda: Path("~/.scopesync").expanduser())
    state_db_name: str = "state.db"

    @field_validator("data_directory", mode="before")
    @classmethod
    def expand_path(cls, v: Path | str) -> Path:
        """Expand user path and resolve to absolute."""
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser().resolve()

    @property
    def db_path(self) -> Path:
        """Full path of the SQLite database file."""
        return self.data_directory / self.state_db_name


class ReconcilerConfig(BaseModel):
    """Requeue behavior of the reconcile trigger."""

    max_tries: int = Field(default=5, ge=1, le=20)
    max_time_seconds: float = Field(default=60.0, ge=1.0, le=600.0)


class LoggingConfig(BaseModel):
    """Logging configuration for loguru."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["console", "json"] = "console"
    file: Path | None = None
    rotation: str = "10 MB"
    retention: str = "7 days"


class Config(BaseSettings):
    """Root configuration for ScopeSync."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    reconciler: ReconcilerConfig = Field(default_factory=ReconcilerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "SCOPESYNC_",
        "env_nested_delimiter": "__",
    }
