"""Local-directory store for uploaded files, keyed by filename."""

from __future__ import annotations

import logging
import os
import posixpath
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import InvalidStoragePathError, StoredFileNotFoundError

LOGGER = logging.getLogger(__name__)

_UNSAFE_RUN = re.compile(r"[\\/\x00-\x1f\x7f]+")


@dataclass
class StoredFile:
    filename: str
    size: int
    mtime: float  # epoch milliseconds
    path: str


def sanitize_filename(name: str) -> str:
    """Replace path separators and control characters with ``_``."""
    return _UNSAFE_RUN.sub("_", name)


def unique_filename(original_name: str, now: Optional[datetime] = None) -> str:
    """Build ``<base>__<YYYY-MM-DD_HH-MM-SS><ext>`` from an uploaded file's name."""
    base, ext = posixpath.splitext(posixpath.basename(original_name))
    safe_base = sanitize_filename(base) or "file"
    safe_ext = sanitize_filename(ext)
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")
    return f"{safe_base}__{stamp}{safe_ext}"


class UploadStore:
    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def ensure_root(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    def _stored(self, path: Path) -> StoredFile:
        stat = path.stat()
        return StoredFile(
            filename=path.name,
            size=stat.st_size,
            mtime=stat.st_mtime * 1000,
            path=f"{self._root.name}/{path.name}",
        )

    def resolve(self, filename: str) -> Tuple[str, Path]:
        """Sanitize ``filename`` and resolve it inside the root, or raise."""
        safe_name = sanitize_filename(filename)
        root = self._root.resolve()
        resolved = (root / safe_name).resolve()
        if not str(resolved).startswith(str(root) + os.sep):
            LOGGER.warning("Rejected path outside upload dir: %r", filename)
            raise InvalidStoragePathError(filename)
        return safe_name, resolved

    def _existing(self, filename: str) -> Path:
        _, resolved = self.resolve(filename)
        if not resolved.is_file():
            raise StoredFileNotFoundError(filename)
        return resolved

    def put(self, original_filename: str, data: bytes, now: Optional[datetime] = None) -> StoredFile:
        self.ensure_root()
        name = unique_filename(original_filename or "upload", now=now)
        target = self._root / name
        target.write_bytes(data)
        LOGGER.info("Stored upload %r as %s (%d bytes)", original_filename, name, len(data))
        return self._stored(target)

    def list(self) -> List[StoredFile]:
        """Stored files, newest first."""
        self.ensure_root()
        files = [
            self._stored(entry)
            for entry in self._root.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        ]
        files.sort(key=lambda f: f.mtime, reverse=True)
        return files

    def get(self, filename: str) -> bytes:
        return self._existing(filename).read_bytes()

    def stat(self, filename: str) -> StoredFile:
        return self._stored(self._existing(filename))

    def delete(self, filename: str) -> None:
        path = self._existing(filename)
        path.unlink()
        LOGGER.info("Deleted upload %s", path.name)
