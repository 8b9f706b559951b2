"""Project state: path-keyed reconciliation of generated files."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .models import Delta, FileRecord
from .storage import SessionStore

logger = logging.getLogger(__name__)

Listener = Callable[[Tuple[FileRecord, ...]], None]


def reconcile(existing: Sequence[FileRecord], delta: Iterable[FileRecord]) -> List[FileRecord]:
    """Fold ``delta`` into ``existing`` by path.

    Known paths are replaced where they stand; new paths are appended in the
    order the delta lists them. Applying the same delta twice is a no-op.
    """

    result = list(existing)
    positions = {record.path: index for index, record in enumerate(result)}
    for record in delta:
        index = positions.get(record.path)
        if index is None:
            positions[record.path] = len(result)
            result.append(record)
        else:
            result[index] = record
    return result


def update_file(existing: Sequence[FileRecord], path: str, new_content: str) -> Sequence[FileRecord]:
    """Replace the content of ``path``; unknown paths return ``existing`` untouched."""

    for index, record in enumerate(existing):
        if record.path == path:
            updated = list(existing)
            updated[index] = FileRecord(path=record.path, content=new_content, language=record.language)
            return updated
    return existing


def resolve_active_path(files: Sequence[FileRecord], active_path: Optional[str]) -> Optional[str]:
    """Heal a selection: keep it if it still exists, else the first file or ``None``."""

    if active_path is not None and any(record.path == active_path for record in files):
        return active_path
    return files[0].path if files else None


class ProjectStore:
    """Owns the canonical file list and keeps it in sync with a :class:`SessionStore`.

    Other components only see tuple snapshots and submit changes through
    :meth:`apply` and :meth:`update_file`.
    """

    def __init__(self, session: SessionStore) -> None:
        self._session = session
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        restored = session.load()
        self._files: Tuple[FileRecord, ...] = tuple(restored or ())
        if restored:
            logger.info("Restored %d file(s) from %s", len(restored), session.path)

    @property
    def files(self) -> Tuple[FileRecord, ...]:
        return self._files

    def get(self, path: str) -> Optional[FileRecord]:
        for record in self._files:
            if record.path == path:
                return record
        return None

    def load(self) -> Optional[List[FileRecord]]:
        return self._session.load()

    def save(self, files: Iterable[FileRecord]) -> None:
        self._session.save(files)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def apply(self, delta: Delta | Iterable[FileRecord]) -> Tuple[FileRecord, ...]:
        records = delta.files if isinstance(delta, Delta) else tuple(delta)
        with self._lock:
            merged = reconcile(self._files, records)
            snapshot = self._commit(merged)
        logger.debug("Reconciled %d file(s); project now has %d", len(records), len(snapshot))
        self._notify(snapshot)
        return snapshot

    def update_file(self, path: str, content: str) -> Tuple[FileRecord, ...]:
        with self._lock:
            current = self._files
            updated = update_file(current, path, content)
            if updated is current:
                return current
            snapshot = self._commit(updated)
        self._notify(snapshot)
        return snapshot

    def clear(self) -> None:
        with self._lock:
            self._files = ()
            self._session.clear()
        self._notify(())

    def _commit(self, files: Iterable[FileRecord]) -> Tuple[FileRecord, ...]:
        snapshot = tuple(files)
        self._session.save(snapshot)
        self._files = snapshot
        return snapshot

    def _notify(self, snapshot: Tuple[FileRecord, ...]) -> None:
        for listener in list(self._listeners):
            listener(snapshot)
