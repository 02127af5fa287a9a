"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FieldSettings(BaseSettings):
    """Playfield dimensions in pixels."""

    width: int = Field(default=800, gt=40)
    height: int = Field(default=600, gt=40)


class DisplaySettings(BaseSettings):
    """Simulator window settings."""

    fps: int = Field(default=60, ge=1, le=240)
    scale: int = Field(default=1, ge=1, le=4)
    title: str = "DodgeBall"
    fullscreen: bool = False


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="DODGEBALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    env: Literal["simulator", "headless"] = "simulator"
    debug: bool = False

    # Gameplay
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    seed: Optional[int] = None
    audio_enabled: bool = True

    # Headless runs
    headless_seconds: float = Field(default=60.0, gt=0)

    # Score history
    history_path: Path = Field(default_factory=lambda: Path.home() / ".dodgeball" / "scores.json")
    history_limit: int = Field(default=20, ge=1)

    # Nested settings
    field: FieldSettings = Field(default_factory=FieldSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)

    @property
    def is_simulator(self) -> bool:
        """Check if running with a window."""
        return self.env == "simulator"

    @property
    def is_headless(self) -> bool:
        return self.env == "headless"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
