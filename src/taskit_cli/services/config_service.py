"""Configuration service for managing Taskit CLI configuration.

This module provides the ConfigService class, which is the single source of truth
for configuration management in Taskit CLI. It handles:

- Loading and saving config.json
- Config file initialization with sensible defaults
- The Pomodoro configuration store used by the focus engine
- Locating the persisted focus engine state
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

from taskit_cli.models.config_models import AppConfig, PomodoroConfig
from taskit_cli.models.focus.exceptions import PersistenceError
from taskit_cli.models.focus.store import JsonFileStore

APP_NAME = "taskit_cli"
STATE_FILE_NAME = "pomodoro_state.json"


class ConfigService:
    """Service for managing application configuration."""

    def __init__(self):
        """Initialize the config service."""

        self.config_dir = Path(user_config_dir(APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir(APP_NAME))

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def state_path(self) -> Path:
        return self.data_dir / "state" / STATE_FILE_NAME

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run
            self._config = AppConfig()
            self.save_config()
        except Exception as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self):
        """Save the current configuration to storage."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4, by_alias=True))

            self.config_path.chmod(0o600)
        except Exception as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def reset_config(self):
        """Reset configuration to defaults."""
        self._config = None
        if self.config_path.exists():
            self.config_path.unlink()
        self.load_config()

    def get_pomodoro_config(self) -> PomodoroConfig:
        return self.config.pomodoro

    def set_pomodoro_config(self, pomodoro: PomodoroConfig) -> None:
        self._config = self.config.model_copy(update={"pomodoro": pomodoro})
        self.save_config()


class PomodoroConfigStore:
    """Configuration store handed to the focus engine."""

    def __init__(self, config_service: ConfigService):
        self.config_service = config_service

    def get(self) -> PomodoroConfig:
        return self.config_service.get_pomodoro_config()

    def set(self, config: PomodoroConfig) -> None:
        try:
            self.config_service.set_pomodoro_config(config)
        except RuntimeError as e:
            raise PersistenceError(str(e)) from e


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a singleton instance of ConfigService."""
    return ConfigService()


def get_state_store() -> JsonFileStore:
    """Store holding the focus engine snapshot."""
    return JsonFileStore(get_config_service().state_path)
