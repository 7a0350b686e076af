"""Local filesystem streams used as upload sources and download sinks."""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional


class AtomicFileSink:
    """Writes to a temporary sibling of ``path`` and renames it into place.

    The target is only replaced by ``finish``; a failed download leaves any
    existing file untouched.
    """

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._handle: Optional[BinaryIO] = None
        self._tmp: Optional[str] = None

    @property
    def opened(self) -> bool:
        return self._handle is not None

    def _open(self) -> BinaryIO:
        fd, self._tmp = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".part",
        )
        self._handle = os.fdopen(fd, "wb")
        return self._handle

    def write(self, data: bytes) -> int:
        handle = self._handle or self._open()
        return handle.write(data)

    def finish(self) -> None:
        """Move the written bytes over ``path``, creating it empty if nothing arrived."""
        if self._handle is None:
            self._open()
        self._handle.close()
        os.replace(self._tmp, self._path)
        self._tmp = None

    def discard(self) -> None:
        if self._handle is not None:
            self._handle.close()
        if self._tmp is not None:
            Path(self._tmp).unlink(missing_ok=True)
            self._tmp = None


class LocalFileSystem:
    """IFileSystem over the process's local disk."""

    @contextmanager
    def open_source(self, path: str) -> Iterator[BinaryIO]:
        # Opening eagerly surfaces a missing file before any backend call.
        with open(path, "rb") as handle:
            yield handle

    @contextmanager
    def open_sink(self, path: str) -> Iterator[AtomicFileSink]:
        sink = AtomicFileSink(path)
        try:
            yield sink
            sink.finish()
        except BaseException:
            sink.discard()
            raise
