"""Application paths and user settings."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

APP_NAME = "DevForge"

DEFAULT_SETTINGS: Dict[str, str] = {
    "backend_url": "",
    "model": "gpt-4o-mini",
    "provider_base_url": "https://api.openai.com/v1",
    "request_timeout": "60",
    "project_name": "devforge",
}

# Environment variables that take precedence over settings.json
ENV_OVERRIDES: Dict[str, str] = {
    "backend_url": "DEVFORGE_BACKEND_URL",
    "model": "DEVFORGE_MODEL",
    "provider_base_url": "DEVFORGE_PROVIDER_URL",
}


def app_data_dir() -> Path:
    """Return the platform-specific application data directory."""
    override = os.getenv("DEVFORGE_HOME")
    if override:
        target = Path(override)
    elif os.name == "nt":
        target = Path(os.getenv("LOCALAPPDATA", Path.home())) / APP_NAME
    else:
        target = Path.home() / ".local" / "share" / APP_NAME
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("Could not create data directory %s: %s", target, exc)
    return target


def session_path() -> Path:
    return app_data_dir() / "session.json"


def settings_path() -> Path:
    return app_data_dir() / "settings.json"


def logs_dir() -> Path:
    return app_data_dir() / "logs"


class Settings:
    """Very small settings helper storing JSON data."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path if path is not None else settings_path()
        self._settings: Dict[str, str] = {}
        self.load()

    def load(self) -> None:
        changed = False
        self._settings = {}
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Ignoring unreadable settings %s: %s", self.path, exc)
                data = {}
            if isinstance(data, dict):
                self._settings = {str(k): str(v) for k, v in data.items()}

        for key, value in DEFAULT_SETTINGS.items():
            if self._settings.get(key, "") == "" and value:
                self._settings[key] = value
                changed = True

        if changed:
            self.save()

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._settings, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not write settings %s: %s", self.path, exc)

    def get(self, key: str, default: str = "") -> str:
        env_name = ENV_OVERRIDES.get(key)
        if env_name and os.getenv(env_name):
            return os.environ[env_name]
        return self._settings.get(key, default or DEFAULT_SETTINGS.get(key, ""))

    def set(self, key: str, value: str) -> None:
        self._settings[key] = value
        self.save()

    @property
    def backend_url(self) -> str:
        return self.get("backend_url").strip()

    @property
    def api_key(self) -> str:
        return os.getenv("OPENAI_API_KEY", "").strip()

    @property
    def request_timeout(self) -> float:
        raw = self.get("request_timeout")
        try:
            value = float(raw)
        except ValueError:
            value = 0.0
        # requests rejects non-positive timeouts
        if not value > 0:
            logger.warning("Invalid request_timeout %r; using %s", raw, DEFAULT_SETTINGS["request_timeout"])
            return float(DEFAULT_SETTINGS["request_timeout"])
        return value
