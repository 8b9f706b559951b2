from __future__ import annotations

import json
from pathlib import Path

import pytest

from devforge.config import DEFAULT_SETTINGS, Settings, app_data_dir, session_path


def test_app_data_dir_honours_override(data_home: Path) -> None:
    assert app_data_dir() == data_home
    assert data_home.is_dir()
    assert session_path() == data_home / "session.json"


def test_settings_fill_defaults_on_first_load(data_home: Path) -> None:
    settings = Settings()
    assert settings.get("model") == DEFAULT_SETTINGS["model"]
    stored = json.loads((data_home / "settings.json").read_text(encoding="utf-8"))
    assert stored["project_name"] == "devforge"


def test_unreadable_settings_fall_back_to_defaults(data_home: Path) -> None:
    (data_home / "settings.json").write_text("{broken", encoding="utf-8")
    settings = Settings()
    assert settings.request_timeout == float(DEFAULT_SETTINGS["request_timeout"])


def test_environment_overrides_settings(data_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    settings = Settings()
    settings.set("model", "from-file")
    assert Settings().get("model") == "from-file"
    monkeypatch.setenv("DEVFORGE_MODEL", "from-env")
    assert settings.get("model") == "from-env"


def test_invalid_timeout_uses_default(data_home: Path) -> None:
    settings = Settings()
    settings.set("request_timeout", "soon")
    assert settings.request_timeout == float(DEFAULT_SETTINGS["request_timeout"])


@pytest.mark.parametrize("raw", ["0", "-5", "nan"])
def test_non_positive_timeout_uses_default(data_home: Path, raw: str) -> None:
    settings = Settings()
    settings.set("request_timeout", raw)
    assert settings.request_timeout == float(DEFAULT_SETTINGS["request_timeout"])


def test_positive_timeout_is_kept(data_home: Path) -> None:
    settings = Settings()
    settings.set("request_timeout", "12.5")
    assert settings.request_timeout == 12.5


def test_unusable_data_dir_does_not_raise(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    monkeypatch.setenv("DEVFORGE_HOME", str(blocker / "sub"))
    assert app_data_dir() == blocker / "sub"
    settings = Settings()
    assert settings.get("project_name") == "devforge"
