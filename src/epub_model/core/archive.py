"""Zip-backed entry reader for EPUB archives."""

import io
import logging
import threading
import zipfile
import zlib
from pathlib import Path

from epub_model.errors import (
    ArchiveClosedError,
    ResourceNotFoundError,
    SourceUnreadableError,
)

log = logging.getLogger(__name__)


class ZipEntryReader:
    """Read entries of a zip archive by their internal path.

    Reads are serialized with a lock so one reader can be shared by
    several threads. Once closed, every read raises ArchiveClosedError.
    """

    def __init__(self, zf: zipfile.ZipFile, source: str):
        self._zip = zf
        self._lock = threading.Lock()
        self._closed = False
        self.source = source
        self._infos = {info.filename: info for info in zf.infolist()}

    @classmethod
    def open(cls, path: Path) -> "ZipEntryReader":
        """Open an archive on disk."""
        try:
            zf = zipfile.ZipFile(path)
        except (OSError, zipfile.BadZipFile) as exc:
            raise SourceUnreadableError(
                f"Cannot open archive {path}: {exc}", path=str(path)
            ) from exc
        log.debug("Opened %s (%d entries)", path, len(zf.infolist()))
        return cls(zf, str(path))

    @classmethod
    def from_bytes(cls, data: bytes, source: str = "<memory>") -> "ZipEntryReader":
        """Open an archive held in memory."""
        try:
            zf = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as exc:
            raise SourceUnreadableError(
                f"Invalid ZIP data: {exc}", path=source
            ) from exc
        return cls(zf, source)

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self, path: str | None = None) -> None:
        if self._closed:
            raise ArchiveClosedError(
                f"Archive {self.source} is closed", path=path
            )

    def names(self) -> list[str]:
        """Entry names in archive order."""
        self._check_open()
        return list(self._infos)

    def has(self, path: str) -> bool:
        self._check_open(path)
        return path in self._infos

    def info(self, path: str) -> zipfile.ZipInfo:
        self._check_open(path)
        try:
            return self._infos[path]
        except KeyError:
            raise ResourceNotFoundError(
                f"No entry '{path}' in archive", path=path
            ) from None

    def first_entry(self) -> str | None:
        self._check_open()
        return next(iter(self._infos), None)

    def read(self, path: str) -> bytes:
        """Return the full content of the entry at path."""
        info = self.info(path)
        with self._lock:
            self._check_open(path)
            try:
                return self._zip.read(info)
            except (OSError, zipfile.BadZipFile, RuntimeError, zlib.error) as exc:
                raise SourceUnreadableError(
                    f"Cannot read entry '{path}': {exc}", path=path
                ) from exc

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._zip.close()
                self._closed = True
                log.debug("Closed %s", self.source)
