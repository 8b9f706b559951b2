"""ZIP export of the project file set."""

from __future__ import annotations

import io
import logging
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .models import FileRecord

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = "devforge"
ARCHIVE_EXTENSION = "zip"


@dataclass(frozen=True)
class ExportedArchive:
    filename: str
    data: bytes

    def write_to(self, directory: str | Path) -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / self.filename
        target.write_bytes(self.data)
        logger.info("Wrote archive %s (%d bytes)", target, len(self.data))
        return target


def build_archive(files: Iterable[FileRecord]) -> bytes:
    """Encode ``files`` as a ZIP; entry names are the record paths exactly."""

    buffer = io.BytesIO()
    stamp = time.localtime(time.time())[:6]
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for record in files:
            info = zipfile.ZipInfo(record.path, date_time=stamp)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            zf.writestr(info, record.content.encode("utf-8"))
    return buffer.getvalue()


def export_archive(files: Iterable[FileRecord], name: str = DEFAULT_ARCHIVE_NAME) -> ExportedArchive:
    name = name.strip() or DEFAULT_ARCHIVE_NAME
    return ExportedArchive(filename=f"{name}.{ARCHIVE_EXTENSION}", data=build_archive(files))
