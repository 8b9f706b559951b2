from __future__ import annotations

import json
from pathlib import Path

from devforge.core.models import FileRecord
from devforge.core.storage import SESSION_KEY, SessionStore


def test_load_without_prior_save_returns_none(tmp_path: Path) -> None:
    assert SessionStore(tmp_path / "session.json").load() is None


def test_save_then_load_round_trips(tmp_path: Path) -> None:
    files = [
        FileRecord(path="index.html", content="<h1>ünïcode</h1>"),
        FileRecord(path="src/app.tsx", content="export {}", language="typescript"),
        FileRecord(path="notes", content=""),
    ]
    store = SessionStore(tmp_path / "session.json")
    store.save(files)
    assert store.load() == files
    raw = json.loads((tmp_path / "session.json").read_text(encoding="utf-8"))
    assert raw[SESSION_KEY][0] == {"path": "index.html", "language": "html", "content": "<h1>ünïcode</h1>"}


def test_save_overwrites_previous_state(tmp_path: Path) -> None:
    store = SessionStore(tmp_path / "session.json")
    store.save([FileRecord(path="a.js", content="1")])
    store.save([FileRecord(path="b.js", content="2")])
    assert store.load() == [FileRecord(path="b.js", content="2")]


def test_corrupt_or_legacy_payload_reads_as_no_session(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    store = SessionStore(path)

    path.write_text("{not json", encoding="utf-8")
    assert store.load() is None

    path.write_text(json.dumps([{"path": "a.js", "content": "x"}]), encoding="utf-8")
    assert store.load() is None

    path.write_text(json.dumps({SESSION_KEY: {"a.js": "x"}}), encoding="utf-8")
    assert store.load() is None

    path.write_text(json.dumps({SESSION_KEY: [{"path": "a.js", "content": 3}]}), encoding="utf-8")
    assert store.load() is None


def test_save_failure_is_swallowed(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = SessionStore(blocker / "nested" / "session.json")
    store.save([FileRecord(path="a.js", content="1")])
    assert store.load() is None
