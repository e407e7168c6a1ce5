"""Runtime settings for regforms.

Settings come from three layers, later layers winning:

1. Field defaults below.
2. The ``forms:`` section of ``.regforms.yaml`` in the project root.
3. Environment variables with the ``REGFORMS_`` prefix (and ``.env``).

Example .regforms.yaml:
    forms:
      storage_backend: file          # memory | file | none
      storage_dir: ./.regforms       # root for the file store
      execution_context: interactive # interactive | non_interactive
      scroll_timeout: 0.8
      submit_base_url: https://example.org/api
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

__all__ = ["FormSettings", "get_settings", "PROJECT_FILE_NAME"]

PROJECT_FILE_NAME = ".regforms.yaml"


class FormSettings(BaseSettings):
    """Environment-based settings for form sessions.

    Example:
        >>> # REGFORMS_STORAGE_BACKEND=file
        >>> # REGFORMS_STORAGE_DIR=/var/lib/regforms
        >>> settings = FormSettings()
        >>> settings.storage_backend
        'file'
    """

    storage_backend: str = Field(
        default="memory", description="Session store: memory, file or none"
    )
    storage_dir: str = Field(default="./.regforms", description="Root directory for the file store")
    execution_context: str = Field(
        default="interactive",
        description="interactive restores persisted state; non_interactive never does",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format: 'json' or 'console'")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")
    scroll_timeout: float = Field(
        default=0.8,
        ge=0.0,
        le=10.0,
        description="Max wait for the pre-submit scroll, seconds",
    )
    submit_base_url: Optional[str] = Field(
        default=None, description="Base URL of the submission endpoint"
    )
    submit_timeout: float = Field(
        default=10.0, gt=0.0, description="HTTP timeout for submissions, seconds"
    )
    max_retries: int = Field(default=3, ge=1, le=10, description="Max submission attempts")
    retry_delay: float = Field(
        default=0.5, ge=0.0, le=60.0, description="Base retry delay in seconds"
    )

    model_config = SettingsConfigDict(
        env_prefix="REGFORMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        valid = ["memory", "file", "none"]
        if v.lower() not in valid:
            raise ValueError(f"storage_backend must be one of: {valid}")
        return v.lower()

    @field_validator("execution_context")
    @classmethod
    def validate_execution_context(cls, v: str) -> str:
        valid = ["interactive", "non_interactive"]
        normalized = v.lower().replace("-", "_")
        if normalized not in valid:
            raise ValueError(f"execution_context must be one of: {valid}")
        return normalized

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> "FormSettings":
        """Load settings from .regforms.yaml, then the environment.

        Values from the YAML file act as defaults; environment variables
        still override them. A malformed file is logged and ignored.

        Args:
            project_root: Project root directory. Defaults to cwd.
        """
        file_values = _read_project_file((project_root or Path.cwd()) / PROJECT_FILE_NAME)

        settings = cls()
        if not file_values:
            return settings

        # Only let the file fill in what the environment left at defaults
        explicit = settings.model_fields_set
        merged = {
            k: v
            for k, v in file_values.items()
            if k not in explicit and k in cls.model_fields
        }
        if not merged:
            return settings
        try:
            return cls.model_validate({**settings.model_dump(), **merged})
        except ValidationError as e:
            logger.warning("Ignoring invalid values in %s: %s", PROJECT_FILE_NAME, e)
            return settings

    def get_storage_dir(self, project_root: Optional[Path] = None) -> Path:
        """Get absolute path to the file store root."""
        root = project_root or Path.cwd()
        return (root / self.storage_dir).resolve()


def _read_project_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable %s: %s", path, e)
        return {}

    section = config.get("forms", {}) if isinstance(config, dict) else {}
    if not isinstance(section, dict):
        logger.warning("Ignoring %s: 'forms' must be a mapping", path)
        return {}
    return section


_settings: FormSettings | None = None


def get_settings(reload: bool = False) -> FormSettings:
    """Get the process-wide settings (loaded on first access)."""
    global _settings
    if _settings is None or reload:
        _settings = FormSettings.load()
    return _settings
