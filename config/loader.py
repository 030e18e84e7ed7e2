"""Settings loader.

Configuration priority (highest to lowest):
1. CLI overrides
2. Environment variables (GITDRIVE_OWNER, GITDRIVE_PUSH_INTERVAL, ...)
3. User config (~/.gitdrive/config.json)
4. Field defaults in DriveSettings
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from config.schema import DEFAULT_HOME, DriveSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "GITDRIVE_"


class ConfigLoader:
    """Merge config file, environment and CLI overrides into DriveSettings."""

    def __init__(self, config_file: str | Path | None = None, environ: dict[str, str] | None = None):
        self.config_file = Path(config_file) if config_file else DEFAULT_HOME / "config.json"
        self.environ = os.environ if environ is None else environ

    def load(self, cli_overrides: dict[str, Any] | None = None) -> DriveSettings:
        merged: dict[str, Any] = {}
        merged.update(self._load_user_config())
        merged.update(self._load_env())
        if cli_overrides:
            merged.update(cli_overrides)
        merged = {k: self._expand(v) for k, v in merged.items() if v is not None}
        return DriveSettings(**merged)

    def _load_user_config(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            data = json.loads(self.config_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {self.config_file}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"{self.config_file} must contain a JSON object")
        logger.debug("loaded user config from %s", self.config_file)
        return data

    def _load_env(self) -> dict[str, Any]:
        fields = DriveSettings.model_fields
        result: dict[str, Any] = {}
        for key, value in self.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            name = key[len(ENV_PREFIX):].lower()
            if name in fields:
                result[name] = value
        return result

    @staticmethod
    def _expand(value: Any) -> Any:
        """Expand ${VAR} and ~ in string values."""
        if isinstance(value, str):
            return os.path.expandvars(os.path.expanduser(value))
        return value


def load_settings(cli_overrides: dict[str, Any] | None = None, config_file: str | Path | None = None) -> DriveSettings:
    return ConfigLoader(config_file=config_file).load(cli_overrides)
