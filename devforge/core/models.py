"""Data models for generated project files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple

PLAIN_TEXT = "plaintext"

EXTENSION_LANGUAGES: Dict[str, str] = {
    "js": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "jsx": "javascript",
    "json": "json",
    "css": "css",
    "html": "html",
    "md": "markdown",
    "py": "python",
    "sh": "shell",
}


def normalize_language(path: str, explicit_language: Optional[str] = None) -> str:
    """Return the language hint for ``path``.

    An explicit, non-empty language always wins. Otherwise the extension of the
    last path segment is looked up in :data:`EXTENSION_LANGUAGES`; unknown or
    missing extensions map to :data:`PLAIN_TEXT`.
    """

    if explicit_language:
        return explicit_language
    suffix = PurePosixPath(path).suffix
    return EXTENSION_LANGUAGES.get(suffix[1:].lower(), PLAIN_TEXT)


def is_valid_path(path: object) -> bool:
    if not isinstance(path, str) or not path.strip():
        return False
    if path.startswith("/") or "\\" in path:
        return False
    return True


@dataclass(frozen=True)
class FileRecord:
    """One named text artifact of a project. ``path`` is the identity key."""

    path: str
    content: str
    language: str = ""

    def __post_init__(self) -> None:
        if not self.language:
            object.__setattr__(self, "language", normalize_language(self.path))

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "language": self.language,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: object) -> "FileRecord":
        if not isinstance(data, dict):
            raise ValueError("file entry must be an object")
        path = data.get("path")
        content = data.get("content")
        language = data.get("language")
        if not is_valid_path(path):
            raise ValueError(f"invalid file path: {path!r}")
        if not isinstance(content, str):
            raise ValueError(f"file {path!r} has no text content")
        if language is not None and not isinstance(language, str):
            raise ValueError(f"file {path!r} has a non-text language")
        return cls(path=path, content=content, language=normalize_language(path, language))


@dataclass(frozen=True)
class Delta:
    """A batch of files returned by one AI action."""

    files: Tuple[FileRecord, ...] = ()
    summary: Optional[str] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def paths(self) -> List[str]:
        return [record.path for record in self.files]


def group_by_directory(files: Iterable[FileRecord]) -> Dict[str, List[str]]:
    """Group paths by parent directory for the file tree; root files go under ``/``."""

    grouped: Dict[str, List[str]] = {}
    for record in files:
        parts = record.path.split("/")
        directory = "/".join(parts[:-1]) if len(parts) > 1 else "/"
        grouped.setdefault(directory, []).append(record.path)
    return {directory: grouped[directory] for directory in sorted(grouped)}
