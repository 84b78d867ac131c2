# lazyiql/store.py
from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol


class CacheStore(Protocol):
    """Where an ExpiringCache keeps its serialized state between runs."""

    def load(self) -> Optional[str]: ...

    def save(self, blob: str) -> None: ...


class MemoryStore:
    def __init__(self, blob: Optional[str] = None):
        self.blob = blob
        self.saves = 0

    def load(self) -> Optional[str]:
        return self.blob

    def save(self, blob: str) -> None:
        self.blob = blob
        self.saves += 1


class FileStore:
    """
    One JSON file per cache, scoped to a working directory (the "document").
    A missing or empty file loads as None. Saves replace the file atomically.
    """

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return text or None

    def save(self, blob: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            try:
                fh = os.fdopen(fd, "w", encoding="utf-8")
            except BaseException:
                os.close(fd)
                raise
            with fh:
                fh.write(blob)
            os.replace(tmp, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise

    def __repr__(self) -> str:
        return f"FileStore({str(self.path)!r})"
