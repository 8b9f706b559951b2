from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Union

import pytest
import requests

sys.path.append(str(Path(__file__).resolve().parents[1]))


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", payload: object = None) -> None:
        self.status_code = status_code
        self.text = text
        self._payload = payload

    def json(self) -> object:
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Stands in for requests.Session; routes are URL -> response or exception."""

    def __init__(self, routes: Dict[str, Union[FakeResponse, Exception]] | None = None) -> None:
        self.routes = dict(routes or {})
        self.calls: List[tuple] = []

    def _lookup(self, url: str) -> FakeResponse:
        target = self.routes.get(url)
        if target is None:
            raise requests.ConnectionError(f"no route for {url}")
        if isinstance(target, Exception):
            raise target
        return target

    def get(self, url: str, **kwargs: object) -> FakeResponse:
        self.calls.append(("GET", url, kwargs))
        return self._lookup(url)

    def post(self, url: str, **kwargs: object) -> FakeResponse:
        self.calls.append(("POST", url, kwargs))
        return self._lookup(url)


class RecordingTransport:
    def __init__(self, reply: object) -> None:
        self.reply = reply
        self.requests: List[dict] = []

    def send(self, request: dict) -> object:
        self.requests.append(request)
        return self.reply


@pytest.fixture
def data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("DEVFORGE_HOME", str(home))
    for name in ("DEVFORGE_BACKEND_URL", "DEVFORGE_MODEL", "DEVFORGE_PROVIDER_URL", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    return home
