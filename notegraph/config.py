"""Settings for notegraph, read from ``config.toml`` in the state directory."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError

logger = logging.getLogger(__name__)

STATE_DIR_ENV = "NOTEGRAPH_HOME"
CONFIG_FILENAME = "config.toml"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def default_state_dir() -> Path:
    """Directory holding the remembered binding, version log and config."""
    env = os.environ.get(STATE_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".notegraph"


def _default_downloads_dir() -> Path:
    downloads = Path.home() / "Downloads"
    return downloads if downloads.is_dir() else Path.cwd()


@dataclass
class Settings:
    """Resolved configuration for one process."""

    state_dir: Path = field(default_factory=default_state_dir)
    extension: str = ".txt"
    downloads_dir: Path = field(default_factory=_default_downloads_dir)
    suggestion_limit: int = 20
    log_level: str = "WARNING"
    default_text: str = "New note"

    @property
    def versions_path(self) -> Path:
        return self.state_dir / "versions.json"

    @property
    def binding_path(self) -> Path:
        return self.state_dir / "binding.json"

    def validate(self) -> list[str]:
        """Return list of validation error messages (empty = valid)."""
        errors: list[str] = []
        if not self.extension.startswith(".") or len(self.extension) < 2:
            errors.append(f"extension: {self.extension!r} must look like '.txt'")
        elif any(sep in self.extension for sep in ("/", "\\", "]")):
            errors.append(f"extension: {self.extension!r} contains a forbidden character")
        if not isinstance(self.suggestion_limit, int) or self.suggestion_limit < 1:
            errors.append(f"suggestion_limit: {self.suggestion_limit!r} must be a positive integer")
        if self.log_level.upper() not in _LOG_LEVELS:
            errors.append(f"log_level: {self.log_level!r} not in {sorted(_LOG_LEVELS)}")
        return errors


def _coerce_str(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    return str(value).strip() if value is not None else default


def load_settings(state_dir: Path | None = None) -> Settings:
    """Load settings from ``<state_dir>/config.toml``.

    A missing file yields the compiled defaults. Invalid values raise
    ``ConfigError`` listing every problem at once.
    """
    import tomllib

    state_dir = state_dir or default_state_dir()
    settings = Settings(state_dir=state_dir)

    config_path = state_dir / CONFIG_FILENAME
    if not config_path.exists():
        logger.debug("No config at %s, using defaults", config_path)
        return settings

    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError([f"{config_path}: {e}"]) from e

    settings.extension = _coerce_str(data, "extension", settings.extension)
    settings.default_text = str(data.get("default_text", settings.default_text))
    settings.log_level = _coerce_str(data, "log_level", settings.log_level).upper()
    settings.suggestion_limit = data.get("suggestion_limit", settings.suggestion_limit)

    downloads = data.get("downloads_dir")
    if downloads:
        settings.downloads_dir = Path(str(downloads)).expanduser()

    errors = settings.validate()
    if errors:
        raise ConfigError(errors)
    return settings
