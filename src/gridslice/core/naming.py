"""Output filenames for slices and the archive.

Slice names are ``<stem>_<row+1>_<col+1>.<ext>`` and the archive is
``<stem>_grid.zip``, where the stem is the original filename up to its
last dot. Because the name is derived from the cell index alone, every
cell of a grid gets a distinct name regardless of processing order.
"""

from __future__ import annotations

from pathlib import PurePath

from gridslice.core.encoder import extension_for
from gridslice.core.slicer import cell_position
from gridslice.core.types import ExportFormat

ARCHIVE_FALLBACK_STEM = "sliced"
ARCHIVE_SUFFIX = "_grid.zip"


def filename_stem(original_name: str) -> str:
    """Return the text before the last dot of the filename.

    Directory components are ignored. Returns "" when there is no dot or
    the only dot is the first character.
    """
    name = PurePath(original_name.replace("\\", "/")).name
    dot = name.rfind(".")
    return name[:dot] if dot > 0 else ""


def slice_filename(
    original_name: str,
    index: int,
    cols: int,
    fmt: ExportFormat | str,
) -> str:
    """Name of the archive entry for one cell.

    Example:
        >>> slice_filename("photo.jpeg", 4, 3, ExportFormat.png)
        'photo_2_2.png'
    """
    row, col = cell_position(index, cols)
    stem = filename_stem(original_name) or PurePath(original_name.replace("\\", "/")).name
    return f"{stem}_{row + 1}_{col + 1}.{extension_for(fmt)}"


def archive_filename(original_name: str) -> str:
    """Download name of the archive.

    Example:
        >>> archive_filename("photo.jpeg")
        'photo_grid.zip'
        >>> archive_filename("README")
        'sliced_grid.zip'
    """
    return f"{filename_stem(original_name) or ARCHIVE_FALLBACK_STEM}{ARCHIVE_SUFFIX}"
