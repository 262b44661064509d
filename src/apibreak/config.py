"""Settings loading with pydantic-settings.

Precedence, lowest to highest:
1. Built-in defaults
2. JSON config file (`--config FILE`, or `apibreak.json` in the working directory)
3. Environment variables (APIBREAK_FORMAT, APIBREAK_FAIL_ON_BREAKING, APIBREAK_VERBOSITY)
4. Explicit overrides (CLI flags)

The kernel never reads settings; only the CLI does.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Type

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "apibreak.json"


class SettingsError(ValueError):
    """Raised when configuration cannot be read or holds invalid values."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    @classmethod
    def parse_error(cls, path: Path, reason: str) -> "SettingsError":
        return cls(f"Failed to read config at {path}: {reason}")

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "SettingsError":
        return cls(f"Invalid value for '{field}' ({value!r}): {reason}", field=field)


class Settings(BaseSettings):
    """Resolved CLI settings."""

    model_config = SettingsConfigDict(
        env_prefix="APIBREAK_",
        case_sensitive=False,
        extra="forbid",
    )

    format: Literal["text", "json"] = "text"
    fail_on_breaking: bool = False
    verbosity: int = Field(default=0, ge=0)  # -v count: 0 warnings, 1 info, 2+ debug


class _JsonFileSource(PydanticBaseSettingsSource):
    """Settings source over a pre-loaded JSON config dict."""

    def __init__(self, settings_cls: Type[BaseSettings], file_config: Dict[str, Any]):
        super().__init__(settings_cls)
        self._file_config = file_config

    def get_field_value(self, field: Any, field_name: str) -> tuple:
        value = self._file_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> Dict[str, Any]:
        return self._file_config


def _make_settings_class(file_config: Dict[str, Any]) -> Type[Settings]:
    class FileBackedSettings(Settings):
        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: Type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource,
        ) -> tuple:
            # First wins: overrides > env vars > JSON file
            return (init_settings, env_settings, _JsonFileSource(settings_cls, file_config))

    return FileBackedSettings


def _read_config_file(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SettingsError.parse_error(path, e.strerror or str(e)) from e
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SettingsError.parse_error(path, str(e)) from e
    if not isinstance(data, dict):
        raise SettingsError.parse_error(path, "top level must be a JSON object")
    return data


def load_settings(
    config_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
    **overrides: Any,
) -> Settings:
    """
    Resolve settings from every source.

    Args:
        config_path: Explicit config file; it must exist.
        cwd: Directory searched for apibreak.json when no explicit file is
            given. Defaults to the current working directory.
        **overrides: Highest-precedence values. None values are ignored so
            unset CLI flags fall through to lower sources.

    Raises:
        SettingsError: unreadable config file or invalid value in any source
    """
    if config_path is not None:
        file_config = _read_config_file(Path(config_path))
        logger.debug("loaded settings from %s", config_path)
    else:
        default_path = (cwd or Path.cwd()) / DEFAULT_CONFIG_NAME
        if default_path.is_file():
            file_config = _read_config_file(default_path)
            logger.debug("loaded settings from %s", default_path)
        else:
            file_config = {}

    settings_cls = _make_settings_class(file_config)
    explicit = {key: value for key, value in overrides.items() if value is not None}
    try:
        return settings_cls(**explicit)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise SettingsError.invalid_value(field, err.get("input"), err["msg"]) from e


def log_level_for(settings: Settings, quiet: bool = False) -> int:
    """Map the verbosity count (or --quiet) to a logging level."""
    if quiet:
        return logging.ERROR
    if settings.verbosity >= 2:
        return logging.DEBUG
    if settings.verbosity == 1:
        return logging.INFO
    return logging.WARNING
