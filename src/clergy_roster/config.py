"""
Settings for the roster sync runner.

Values come from an optional YAML file, then from the environment (a ``.env`` file is
loaded first). Environment variables win over the file.

Example YAML::

    backups_directory: clergy-roster-backups
    backups_enabled: true
    log_level: INFO
    ignore_message_prefix: ignore
    suppress_error_feedback: false
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Environment variable -> settings field
ENV_OVERRIDES: Dict[str, str] = {
    "ROSTER_BACKUPS_DIR": "backups_directory",
    "ROSTER_BACKUPS_ENABLED": "backups_enabled",
    "ROSTER_LOG_LEVEL": "log_level",
    "ROSTER_IGNORE_PREFIX": "ignore_message_prefix",
    "ROSTER_SUPPRESS_ERROR_FEEDBACK": "suppress_error_feedback",
}

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class SyncSettings(BaseModel):
    """Runtime settings. The roster vocabulary is not configurable."""
    backups_directory: Path = Field(default=Path("clergy-roster-backups"))
    backups_enabled: bool = True
    log_level: str = "INFO"
    ignore_message_prefix: str = "ignore"
    # Only report failures in the log, not back to the message sender
    suppress_error_feedback: bool = False

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_settings(
    path: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
) -> SyncSettings:
    """
    Load settings from YAML and the environment.

    Args:
        path: Optional YAML settings file
        env_file: Optional .env file (python-dotenv's default lookup if None)

    Returns:
        Validated SyncSettings

    Raises:
        ConfigError: If the file is missing or malformed, or a value is invalid
    """
    values: Dict[str, Any] = _read_yaml(Path(path)) if path else {}

    load_dotenv(dotenv_path=env_file)
    for env_name, field_name in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is not None and raw.strip():
            logger.debug(f"{field_name} overridden by {env_name}")
            values[field_name] = raw.strip()

    try:
        settings = SyncSettings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e
    logger.debug(f"Loaded settings: {settings}")
    return settings
