from pathlib import Path

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Transport and bind address for remote hosting
    mcp_transport: str = "stdio"
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8000

    # Upper bound on waiting for a busy reservation slot
    slot_lock_timeout_seconds: float = Field(default=5.0, gt=0)

    # Used by tools when the caller omits restaurant_id
    default_restaurant_id: str | None = None

    # Paths & logging; the default is <project_root>/data so it does not
    # depend on the process working directory.
    data_dir: Path = Path(__file__).resolve().parent.parent / "data"
    log_level: str = "INFO"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def db_path(self) -> Path:
        return self.data_dir / "restaurant_ops.db"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings singleton. Created on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings. Used in tests."""
    global _settings  # noqa: PLW0603
    _settings = None
