"""Configuration for dodgeball."""

from .settings import Settings, FieldSettings, DisplaySettings, get_settings

__all__ = ["Settings", "FieldSettings", "DisplaySettings", "get_settings"]
