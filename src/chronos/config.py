"""Central configuration for ChronOS.

This module is the single source of truth for application configuration
(where files live, grid metrics, scheduler timing). The user's timeline data
(birthday, events, fills) is NOT configuration. It lives in the settings file
managed by ``chronos.storage``.

Configuration priority (highest wins):
1. Environment variables (CHRONOS_*, nested with ``__``)
2. Config file (YAML)
3. In-code defaults

Example:
    >>> from chronos.config import get_config
    >>> cfg = get_config()
    >>> cfg.paths.settings_file
    PosixPath('/home/me/.chronos/settings.json')

Config File Format (YAML):
    ```yaml
    paths:
      data_dir: ~/.chronos
      settings_file: ~/.chronos/settings.json
      notes_dir: ~/Documents/vault

    layout:
      cell_size: 16
      cell_gap: 2
      decade_gap: 8

    scheduler:
      check_interval_seconds: 3600
      upcoming_window_days: 180

    debug: false
    verbose: false
    ```
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chronos.core.chronology import DEFAULT_DECADE_GAP, GridLayout
from chronos.core.resolver import UPCOMING_WINDOW_DAYS

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileError(ConfigError):
    """Raised when an explicitly requested config file cannot be used.

    Raised when:
    - The file passed to ``load_config`` does not exist
    - It contains malformed YAML or is not a mapping
    """

    pass


# =============================================================================
# Configuration Models
# =============================================================================


class PathsConfig(BaseModel):
    """Filesystem locations.

    Attributes:
        data_dir: Base directory. Default ~/.chronos
        settings_file: Timeline settings JSON. Default: data_dir/settings.json
        notes_dir: Root that notes folders are resolved against. Default: data_dir/notes
        log_dir: Directory for log files. Default: data_dir/logs
    """

    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".chronos", description="Base data directory."
    )
    settings_file: Path | None = Field(default=None, description="Timeline settings file.")
    notes_dir: Path | None = Field(default=None, description="Root directory for notes.")
    log_dir: Path | None = Field(default=None, description="Log directory.")

    @field_validator("data_dir", "settings_file", "notes_dir", "log_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Any:
        """Expand ~ in configured paths."""
        if isinstance(v, (str, Path)):
            return Path(v).expanduser()
        return v

    @model_validator(mode="after")
    def resolve_defaults(self) -> "PathsConfig":
        """Resolve unset paths relative to data_dir."""
        if self.settings_file is None:
            self.settings_file = self.data_dir / "settings.json"
        if self.notes_dir is None:
            self.notes_dir = self.data_dir / "notes"
        if self.log_dir is None:
            self.log_dir = self.data_dir / "logs"
        return self


class LayoutConfig(BaseModel):
    """Grid pixel metrics handed to renderers."""

    cell_size: float = Field(default=16, gt=0, le=100)
    cell_gap: float = Field(default=2, ge=0, le=50)
    decade_gap: float = Field(default=DEFAULT_DECADE_GAP, ge=0, le=100)
    left_offset: float = Field(default=50, ge=0)
    top_offset: float = Field(default=50, ge=0)

    def to_layout(self, zoom: float = 1.0) -> GridLayout:
        return GridLayout(**self.model_dump()).scaled(zoom)


class SchedulerConfig(BaseModel):
    """Auto-fill timer and highlight window."""

    check_interval_seconds: int = Field(
        default=3600,
        ge=60,
        le=86400,
        description="Delay between auto-fill checks; at most one day.",
    )
    upcoming_window_days: int = Field(
        default=UPCOMING_WINDOW_DAYS,
        ge=1,
        le=3660,
        description="How far ahead planned events are highlighted.",
    )


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Attributes:
        paths: Filesystem path configuration.
        layout: Grid metrics.
        scheduler: Auto-fill and highlight timing.
        debug: Enable debug logging.
        verbose: Enable info logging.
    """

    paths: PathsConfig = Field(default_factory=PathsConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    debug: bool = Field(default=False, description="Enable debug mode.")
    verbose: bool = Field(default=False, description="Enable verbose output.")

    model_config = SettingsConfigDict(
        env_prefix="CHRONOS_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    def log_level(self) -> str:
        if self.debug:
            return "DEBUG"
        if self.verbose:
            return "INFO"
        return "WARNING"


# =============================================================================
# Loading
# =============================================================================


def _default_search_paths() -> list[Path]:
    return [
        Path("./chronos.yaml"),
        Path("./chronos.yml"),
        Path.home() / ".chronos" / "config.yaml",
        Path.home() / ".chronos" / "config.yml",
    ]


def _read_yaml(config_file: Path) -> dict[str, Any]:
    content = config_file.read_text(encoding="utf-8")
    if not content.strip():
        return {}
    loaded = yaml.safe_load(content)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigFileError(f"Config file {config_file} must contain a mapping")
    return loaded


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from file, environment, and defaults.

    If no config file is found, uses defaults only (not an error). A malformed
    file found by searching logs a warning and is ignored.

    Args:
        path: Optional explicit config file.

    Returns:
        Fully-populated AppConfig instance.

    Raises:
        ConfigFileError: If ``path`` was given but is missing or malformed.
    """
    config_data: dict[str, Any] = {}

    if path is not None:
        path = Path(path).expanduser()
        if not path.exists():
            raise ConfigFileError(f"Config file not found: {path}")
        try:
            config_data = _read_yaml(path)
        except yaml.YAMLError as e:
            raise ConfigFileError(f"Failed to parse config file {path}: {e}") from e
    else:
        for candidate in _default_search_paths():
            if not candidate.exists():
                continue
            try:
                config_data = _read_yaml(candidate)
            except (yaml.YAMLError, ConfigFileError, OSError) as e:
                logger.warning(f"Ignoring config file {candidate}: {e}")
            break

    # Environment variables win over file values, so build from the file via
    # init kwargs only for sections the environment does not set.
    try:
        env_config = AppConfig()
        file_config = AppConfig.model_validate(config_data) if config_data else None
    except ValidationError as e:
        logger.warning(f"Error parsing config values: {e}. Using defaults.")
        return AppConfig()

    if file_config is None:
        return env_config
    return _merge_env_over_file(file_config, env_config)


def _merge_env_over_file(file_config: AppConfig, env_config: AppConfig) -> AppConfig:
    defaults = AppConfig.model_construct().model_dump()
    merged = file_config.model_dump()
    env_values = env_config.model_dump()
    for section, value in env_values.items():
        if isinstance(value, dict):
            for key, item in value.items():
                if item != defaults[section][key]:
                    merged[section][key] = item
        elif value != defaults[section]:
            merged[section] = value
    return AppConfig.model_validate(merged)


@functools.lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the cached configuration singleton."""
    return load_config()


def reset_config() -> None:
    """Clear the configuration cache (used by tests)."""
    get_config.cache_clear()
