"""Persistence of finished archives.

The pipeline itself never touches the filesystem; callers hand the archive
bytes and download name to an ArchiveSink.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from gridslice.utils.logging import get_logger

logger = get_logger(__name__)


class ArchiveSink(Protocol):
    """Destination for a finished archive."""

    def persist(self, data: bytes, filename: str) -> Path:
        """Store the archive and return where it went.

        Raises:
            OSError: If the archive could not be stored.
        """
        ...


@dataclass(frozen=True)
class ArchivePersistence:
    """Writes archives into a directory."""

    output_dir: Path

    @staticmethod
    def validate_filename(filename: str) -> None:
        path = Path(filename)
        if not filename or path.is_absolute() or path.name != filename:
            raise ValueError(
                f"Invalid archive filename {filename!r}: must be a simple filename "
                "(no directories)."
            )

    def persist(self, data: bytes, filename: str) -> Path:
        """Atomically write the archive and return its path.

        The bytes go to a temporary file in the target directory which then
        replaces any existing file of the same name.
        """
        self.validate_filename(filename)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        target = self.output_dir / filename

        fd, tmp_name = tempfile.mkstemp(dir=self.output_dir, prefix=".", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            Path(tmp_name).replace(target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Archive saved", path=str(target))
        return target
