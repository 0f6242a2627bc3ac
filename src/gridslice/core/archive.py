"""Zip archive assembly for encoded slices.

Slices are added one at a time as soon as they are encoded; compression
happens in ``finalize()``, which reports its own 0-100 progress weighted by
the number of bytes written so far.
"""

from __future__ import annotations

import asyncio
import zipfile
import zlib
from collections.abc import Callable
from io import BytesIO

from gridslice.core.exceptions import ArchiveFinalizationError
from gridslice.core.types import EncodedSlice
from gridslice.utils.logging import get_logger

logger = get_logger(__name__)

PhaseProgress = Callable[[float], None]

COMPRESSION_METHODS: dict[str, int] = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}


class ArchiveBuilder:
    """Collects named blobs and writes them into a single zip archive.

    Entry names must be unique within one archive; a duplicate is a
    programming error and raises ValueError immediately.

    Example:
        >>> builder = ArchiveBuilder()
        >>> builder.add("photo_1_1.png", png_bytes)
        >>> archive = await builder.finalize(on_progress=print)
    """

    __slots__ = ("_compress_level", "_compression", "_entries", "_finalized", "_names")

    def __init__(self, compression: str = "deflated", compress_level: int = 6) -> None:
        """Initialize an empty archive.

        Args:
            compression: "deflated" or "stored".
            compress_level: zlib level 0-9 (ignored for "stored").

        Raises:
            ValueError: If compression or compress_level is invalid.
        """
        if compression not in COMPRESSION_METHODS:
            raise ValueError(
                f"Unknown compression {compression!r}. "
                f"Valid options: {sorted(COMPRESSION_METHODS)}"
            )
        if not 0 <= compress_level <= 9:
            raise ValueError(f"compress_level must be 0-9, got {compress_level}")
        self._compression = COMPRESSION_METHODS[compression]
        self._compress_level = compress_level
        self._entries: list[tuple[str, bytes]] = []
        self._names: set[str] = set()
        self._finalized = False

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entry_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._entries)

    @property
    def pending_bytes(self) -> int:
        """Uncompressed size of all entries added so far."""
        return sum(len(data) for _, data in self._entries)

    def add(self, filename: str, data: bytes) -> None:
        """Add one entry.

        Raises:
            ValueError: If the name is empty, already used, or the archive
                was already finalized.
        """
        if self._finalized:
            raise ValueError("Cannot add entries to a finalized archive")
        if not filename or filename.startswith("/") or ".." in filename.split("/"):
            raise ValueError(f"Invalid archive entry name: {filename!r}")
        if filename in self._names:
            raise ValueError(f"Duplicate archive entry name: {filename!r}")
        self._names.add(filename)
        self._entries.append((filename, data))

    def add_slice(self, encoded: EncodedSlice) -> None:
        """Add an encoded slice under its own filename."""
        self.add(encoded.filename, encoded.data)

    def discard(self) -> None:
        """Drop every staged entry (used when a run fails)."""
        self._entries.clear()
        self._names.clear()

    async def finalize(self, on_progress: PhaseProgress | None = None) -> bytes:
        """Compress all entries into a zip and return its bytes.

        Each entry is written in a worker thread; progress is reported on
        the caller's task after every entry, non-decreasing from 0 to 100.

        Args:
            on_progress: Called with the phase percentage (0-100).

        Returns:
            The complete archive bytes.

        Raises:
            ArchiveFinalizationError: If writing the archive fails.
            ValueError: If the archive was already finalized.
        """
        if self._finalized:
            raise ValueError("Archive already finalized")
        self._finalized = True

        count = len(self._entries)
        total = max(self.pending_bytes, 1)
        written = 0
        buffer = BytesIO()

        if on_progress is not None:
            on_progress(0.0)

        try:
            with zipfile.ZipFile(
                buffer,
                mode="w",
                compression=self._compression,
                compresslevel=self._compress_level,
            ) as zf:
                for name, data in self._entries:
                    await asyncio.to_thread(zf.writestr, name, data)
                    written += len(data)
                    if on_progress is not None:
                        on_progress(min(100.0, written / total * 100))
        except (OSError, ValueError, RuntimeError, zlib.error, zipfile.LargeZipFile) as e:
            raise ArchiveFinalizationError(f"Failed to write archive: {e}") from e
        finally:
            self.discard()

        archive = buffer.getvalue()
        logger.debug("Archive finalized", entries=count, size=len(archive))
        if on_progress is not None:
            on_progress(100.0)
        return archive
