"""Type definitions for the slicing pipeline.

Contains the run inputs (source image, grid settings) and the values the
pipeline produces (encoded slices, the final result). Inputs are immutable
for the duration of a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from PIL import Image
from pydantic import BaseModel, Field

from gridslice.geometry import Size


class ExportFormat(str, Enum):
    """Output image format for every slice."""

    png = "png"
    jpg = "jpg"
    webp = "webp"


class CropMode(str, Enum):
    """How the source is cropped before it is tiled."""

    original = "original"  # Tile the full image
    square = "square"  # Tile the centered largest square


class GridSettings(BaseModel, frozen=True):
    """Grid and output settings for one run.

    The interactive bound of 20 rows/cols is applied by entry points only;
    the pipeline accepts any positive integer.

    Attributes:
        rows: Number of grid rows (> 0).
        cols: Number of grid columns (> 0).
        format: Output format of each slice.
        crop_mode: Crop applied before tiling.
    """

    rows: int = Field(3, gt=0, description="Grid rows")
    cols: int = Field(3, gt=0, description="Grid columns")
    format: ExportFormat = ExportFormat.png
    crop_mode: CropMode = CropMode.original

    @property
    def total_cells(self) -> int:
        """Number of cells in the full grid."""
        return self.rows * self.cols


@dataclass(frozen=True)
class SourceImage:
    """A decoded image plus the filename it was loaded from.

    The pixel data is treated as read-only for the lifetime of a run.

    Attributes:
        image: Fully decoded PIL image.
        name: Original filename, used only to name outputs.
    """

    image: Image.Image
    name: str

    def __post_init__(self) -> None:
        width, height = self.image.size
        if width <= 0 or height <= 0:
            raise ValueError(f"Source image must have positive size, got {width}x{height}")

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> Size:
        """Return the dimensions as a Size."""
        return Size(width=self.width, height=self.height)


@dataclass(frozen=True)
class EncodedSlice:
    """One encoded cell ready to be added to the archive."""

    index: int
    filename: str
    data: bytes = field(repr=False)
    mime_type: str


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a successful run.

    Attributes:
        archive: Bytes of the finished zip archive.
        filename: Download name for the archive (``<stem>_grid.zip``).
        entries: Archive entry names in the order they were added.
        failed_cells: Indices dropped because their encode step failed.
        requested_cells: Number of cells the run attempted.
    """

    archive: bytes = field(repr=False)
    filename: str
    entries: tuple[str, ...]
    failed_cells: tuple[int, ...] = ()
    requested_cells: int = 0

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def is_complete(self) -> bool:
        """True when no cell was dropped."""
        return not self.failed_cells
