"""File transfer between peers, and small helpers for file and shake messages.

A file arrives as a header (name and size), then base64-encoded chunks, then
a done marker. :class:`FileReceiver` writes the chunks into the download
directory. Stored file messages keep name, path and size joined by ``|``.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .config import AppConfig

log = logging.getLogger(__name__)

KB = 1024
MB = 1024 * 1024
GB = 1024 * 1024 * 1024

FILE_CONTENT_SEPARATOR = "|"
SHAKE_RANGE = 10
SHAKE_COUNT = 6
SHAKE_DURATION_MS = 300


def format_file_size(size: int) -> str:
    """Return a short human-readable size such as ``"3 KB"`` or ``"1.5 MB"``."""
    if size >= GB:
        return f"{size / GB:.1f} GB"
    if size >= MB:
        return f"{size / MB:.1f} MB"
    if size >= KB:
        return f"{size // KB} KB"
    return f"{size} B"


def file_content(file_name: str, path: Union[str, Path], size: int) -> str:
    """Join a file's name, path and size into the stored message content."""
    return FILE_CONTENT_SEPARATOR.join((file_name, str(path), str(size)))


def parse_file_content(content: str) -> tuple[str, str, int]:
    """Split stored file-message content into ``(name, path, size)``.

    Raises ``ValueError`` unless the content has exactly three parts. A size
    that is not a number is read as 0.
    """
    parts = content.split(FILE_CONTENT_SEPARATOR)
    if len(parts) != 3:
        raise ValueError(f"invalid file content format: {content!r}")
    name, path, size_text = parts
    try:
        size = int(size_text.strip())
    except ValueError:
        size = 0
    return name, path, size


def shake_keyframes(
    shake_range: int = SHAKE_RANGE, shake_count: int = SHAKE_COUNT
) -> list[tuple[float, int]]:
    """Return ``(progress, horizontal offset)`` keyframes of a window shake.

    The offset alternates between ``+shake_range`` and ``-shake_range`` and
    the final keyframe, at progress 1.0, puts the window back in place.
    """
    if shake_count <= 0:
        raise ValueError(f"shake_count must be positive, got {shake_count}")
    frames = [
        (i / shake_count, shake_range if i % 2 == 0 else -shake_range)
        for i in range(shake_count)
    ]
    frames.append((1.0, 0))
    return frames


@dataclass(frozen=True)
class ReceivedFile:
    """A completed incoming file."""

    name: str
    path: str
    size: int
    received: int

    @property
    def content(self) -> str:
        """The stored message content describing this file."""
        return file_content(self.name, self.path, self.size)


class FileReceiver:
    """Writes one incoming file at a time into a download directory."""

    def __init__(self, download_dir: Union[str, Path, None] = None) -> None:
        if download_dir is None:
            download_dir = AppConfig().download_path
        self.download_dir = Path(download_dir)
        self.file_name = ""
        self.file_size = 0
        self.received = 0
        self._file: Optional[BinaryIO] = None

    @property
    def active(self) -> bool:
        """Whether a transfer is in progress."""
        return self._file is not None

    @property
    def save_path(self) -> Path:
        """Where the current (or last) file is written."""
        return self.download_dir / self.file_name

    def begin(self, file_name: str, file_size: int) -> Path:
        """Start receiving *file_name*; raises ``OSError`` if it cannot be created."""
        self.abort()
        self.file_name = file_name
        self.file_size = file_size
        self.received = 0
        path = self.save_path
        try:
            self._file = open(path, "wb")
        except OSError:
            log.warning("could not save incoming file to %s", path)
            raise
        log.debug("receiving file %s of %s bytes", file_name, file_size)
        return path

    def write_chunk(self, chunk_b64: Union[str, bytes]) -> int:
        """Decode and write one chunk; return bytes written (0 when idle)."""
        if self._file is None:
            return 0
        try:
            chunk = base64.b64decode(chunk_b64)
        except (binascii.Error, ValueError):
            chunk = base64.b64decode(chunk_b64 + "=" * (-len(chunk_b64) % 4)
                                     if isinstance(chunk_b64, str) else
                                     chunk_b64 + b"=" * (-len(chunk_b64) % 4))
        self._file.write(chunk)
        self.received += len(chunk)
        log.debug("written %s/%s bytes", self.received, self.file_size)
        return len(chunk)

    def finish(self) -> Optional[ReceivedFile]:
        """Close the file and describe it; ``None`` when no transfer is active."""
        if self._file is None:
            return None
        self._file.flush()
        self._file.close()
        self._file = None
        log.debug("file %s complete, %s bytes", self.file_name, self.file_size)
        return ReceivedFile(
            name=self.file_name,
            path=self.save_path.as_posix(),
            size=self.file_size,
            received=self.received,
        )

    def abort(self) -> None:
        """Close any half-received file without reporting it."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "FileReceiver":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.abort()