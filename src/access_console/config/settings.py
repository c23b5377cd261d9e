from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "AccessConsole"
ENV_PREFIX = "ACCESS_CONSOLE_"
ENV_FILE_NAME = "settings.env"

DEFAULT_API_BASE_URL = "http://localhost:3001/api"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 10


def _config_dir() -> Path:
    path = Path(user_config_dir(APP_NAME, roaming=True))
    path.mkdir(parents=True, exist_ok=True)
    return path


def _cache_dir() -> Path:
    path = Path(user_cache_dir(APP_NAME))
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_dir() -> Path:
    return _config_dir()


def cache_dir() -> Path:
    return _cache_dir()


def log_dir() -> Path:
    path = cache_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _env_file_path(explicit: Path | None) -> Path:
    if explicit is not None:
        return explicit
    return _config_dir() / ENV_FILE_NAME


@dataclass(slots=True)
class Settings:
    """Connection and behaviour settings for the access console.

    ``commit_timeout`` bounds how long an assignment commit may stay in flight;
    ``None`` leaves the persistence call unbounded.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    commit_timeout: float | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    expand_groups_by_default: bool = True
    log_level: str = "INFO"

    @property
    def is_configured(self) -> bool:
        """True when an API endpoint and bearer token are available."""
        return bool(self.api_base_url and self.api_token)

    def normalized_base_url(self) -> str:
        return self.api_base_url.rstrip("/")


class SettingsManager:
    """Load and persist application settings with environment overrides."""

    def __init__(self, env_file: Path | None = None) -> None:
        self._env_file = _env_file_path(env_file)

    @property
    def env_file(self) -> Path:
        return self._env_file

    def load(self) -> Settings:
        """Load settings from environment, falling back to persisted file."""
        load_dotenv(self._env_file, override=False)

        settings = Settings()

        base_url = self._get_env("API_BASE_URL")
        if base_url:
            settings.api_base_url = base_url
        settings.api_token = self._get_env("API_TOKEN")

        request_timeout = self._get_float("REQUEST_TIMEOUT")
        if request_timeout is not None:
            settings.request_timeout = request_timeout
        settings.commit_timeout = self._get_float("COMMIT_TIMEOUT")

        page_size = self._get_env("PAGE_SIZE")
        if page_size:
            try:
                settings.page_size = max(1, int(page_size))
            except ValueError:
                pass

        expand = self._get_env("EXPAND_GROUPS")
        if expand is not None:
            settings.expand_groups_by_default = expand.strip().lower() in {
                "1",
                "true",
                "yes",
                "on",
            }

        log_level = self._get_env("LOG_LEVEL")
        if log_level:
            settings.log_level = log_level.upper()

        return settings

    def save(self, settings: Settings) -> None:
        """Persist configuration fields to the managed env file."""
        self._env_file.parent.mkdir(parents=True, exist_ok=True)
        content = [
            f"{ENV_PREFIX}API_BASE_URL={settings.api_base_url}",
            f"{ENV_PREFIX}API_TOKEN={settings.api_token or ''}",
            f"{ENV_PREFIX}REQUEST_TIMEOUT={settings.request_timeout}",
            f"{ENV_PREFIX}COMMIT_TIMEOUT={settings.commit_timeout or ''}",
            f"{ENV_PREFIX}PAGE_SIZE={settings.page_size}",
            f"{ENV_PREFIX}EXPAND_GROUPS={'true' if settings.expand_groups_by_default else 'false'}",
            f"{ENV_PREFIX}LOG_LEVEL={settings.log_level}",
        ]
        self._env_file.write_text("\n".join(content) + "\n", encoding="utf-8")

    def _get_env(self, name: str) -> str | None:
        return os.getenv(f"{ENV_PREFIX}{name}") or None

    def _get_float(self, name: str) -> float | None:
        raw = self._get_env(name)
        if not raw:
            return None
        try:
            return float(raw)
        except ValueError:
            return None


__all__ = [
    "DEFAULT_API_BASE_URL",
    "Settings",
    "SettingsManager",
    "cache_dir",
    "config_dir",
    "log_dir",
]
