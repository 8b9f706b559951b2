"""Durable storage for the current editing session."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional

from .models import FileRecord

logger = logging.getLogger(__name__)

SESSION_KEY = "devforge_files"


class SessionStore:
    """Persist the project file list as one JSON record under :data:`SESSION_KEY`.

    Storage problems never propagate: a missing, unreadable or corrupt record
    reads as "no prior session" and failed writes are logged.
    """

    def __init__(self, path: str | Path, key: str = SESSION_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def load(self) -> Optional[List[FileRecord]]:
        if not self.path.exists():
            return None
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable session %s: %s", self.path, exc)
            return None
        if not isinstance(raw, dict) or self.key not in raw:
            return None
        entries = raw[self.key]
        if not isinstance(entries, list):
            logger.warning("Ignoring session %s: %r is not a list", self.path, self.key)
            return None
        try:
            return [FileRecord.from_dict(entry) for entry in entries]
        except ValueError as exc:
            logger.warning("Ignoring malformed session %s: %s", self.path, exc)
            return None

    def save(self, files: Iterable[FileRecord]) -> None:
        payload = {self.key: [record.to_dict() for record in files]}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".session-", suffix=".json", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(payload, fh, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.warning("Could not persist session to %s: %s", self.path, exc)

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove session %s: %s", self.path, exc)
