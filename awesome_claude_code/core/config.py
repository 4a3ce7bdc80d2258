"""Ambient settings for the awesome-claude-code tooling.

Provides environment-based configuration using pydantic-settings. Only
logging concerns live here. Whether a run preserves or overwrites files,
and where backups go, are always explicit arguments, never read from the
environment.
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Tooling settings.

    Attributes:
        log_level: Threshold for structured log output on stderr
        log_to_file: Also write JSON logs to ``log_dir``
        log_dir: Directory for rotating log files
        pretty_json: Indent JSON log lines
    """

    model_config = SettingsConfigDict(
        env_prefix="ACC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"
    log_to_file: bool = False
    log_dir: Path = Path.home() / ".claude" / "logs"
    pretty_json: bool = False

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVEL_NAMES:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVEL_NAMES)}")
        return level


def load_settings(**overrides) -> Settings:
    """Build settings from environment, ``.env`` and explicit overrides."""
    return Settings(**overrides)
