from __future__ import annotations

import pytest

from devforge.core.models import PLAIN_TEXT, FileRecord, group_by_directory, normalize_language


def test_normalize_language_from_extension() -> None:
    assert normalize_language("app.tsx") == "typescript"
    assert normalize_language("run.sh") == "shell"
    assert normalize_language("src/components/list.jsx") == "javascript"
    assert normalize_language("README.md") == "markdown"


def test_normalize_language_falls_back_to_plain_text() -> None:
    assert normalize_language("noext") == PLAIN_TEXT
    assert normalize_language("archive.tar.gz") == PLAIN_TEXT
    assert normalize_language("v1.2/Makefile") == PLAIN_TEXT


def test_explicit_language_is_returned_unchanged() -> None:
    assert normalize_language("main.js", "TypeScript") == "TypeScript"
    assert normalize_language("main.js", "") == "javascript"


def test_file_record_infers_missing_language() -> None:
    record = FileRecord(path="styles.css", content="body{}")
    assert record.language == "css"
    assert FileRecord(path="x.py", content="", language="python3").language == "python3"


def test_from_dict_rejects_malformed_entries() -> None:
    with pytest.raises(ValueError):
        FileRecord.from_dict({"path": "", "content": "x"})
    with pytest.raises(ValueError):
        FileRecord.from_dict({"path": "a.js"})
    with pytest.raises(ValueError):
        FileRecord.from_dict({"path": "/etc/passwd", "content": "x"})
    with pytest.raises(ValueError):
        FileRecord.from_dict(["a.js", "x"])


def test_from_dict_round_trips_to_dict() -> None:
    record = FileRecord(path="src/index.html", content="<h1>Hi</h1>", language="html")
    assert FileRecord.from_dict(record.to_dict()) == record


def test_group_by_directory_puts_root_files_under_slash() -> None:
    files = [
        FileRecord(path="index.html", content=""),
        FileRecord(path="src/main.js", content=""),
        FileRecord(path="assets/site.css", content=""),
        FileRecord(path="src/util.js", content=""),
    ]
    grouped = group_by_directory(files)
    assert list(grouped) == ["/", "assets", "src"]
    assert grouped["src"] == ["src/main.js", "src/util.js"]
