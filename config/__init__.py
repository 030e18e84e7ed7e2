"""Configuration management for git-drive."""

from .loader import ConfigLoader, load_settings
from .schema import DriveSettings

__all__ = ["ConfigLoader", "DriveSettings", "load_settings"]
