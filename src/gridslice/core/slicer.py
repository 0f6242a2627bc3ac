"""Grid cell geometry and pixel extraction.

Cells are numbered in row-major order: ``row = index // cols`` and
``col = index % cols``. Every cell rect is computed directly from its own
index, never by advancing a cursor, so non-integer slice sizes do not
accumulate drift and adjacent cells share exactly the same edge.

Extraction Behavior:
    All cells of a grid are drawn into one reusable scratch surface whose
    size is ``max(1, floor(slice_width)) x max(1, floor(slice_height))``.
    A pixel-aligned cell of exactly that size is copied verbatim; any other
    cell has its float source box resampled into the surface, which keeps
    sub-pixel geometry instead of rounding the source box.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from PIL import Image

from gridslice.core.exceptions import SurfaceUnavailableError
from gridslice.geometry import CellRect, EffectiveRegion, GridPosition

if TYPE_CHECKING:
    from types import TracebackType

# Surface mode; cleared pixels are fully transparent like a fresh canvas
SURFACE_MODE = "RGBA"
_CLEAR_COLOR = (0, 0, 0, 0)

RESAMPLE_FILTERS: dict[str, Image.Resampling] = {
    "nearest": Image.Resampling.NEAREST,
    "bilinear": Image.Resampling.BILINEAR,
    "bicubic": Image.Resampling.BICUBIC,
    "lanczos": Image.Resampling.LANCZOS,
}


def _require_grid(rows: int, cols: int) -> None:
    if rows < 1 or cols < 1:
        raise ValueError(f"rows and cols must be >= 1, got rows={rows}, cols={cols}")


def cell_position(index: int, cols: int) -> GridPosition:
    """Map a cell index to its zero-based (row, col).

    Raises:
        ValueError: If index is negative or cols < 1.
    """
    if cols < 1:
        raise ValueError(f"cols must be >= 1, got {cols}")
    if index < 0:
        raise ValueError(f"Cell index must be >= 0, got {index}")
    return GridPosition(row=index // cols, col=index % cols)


def cell_index(row: int, col: int, cols: int) -> int:
    """Inverse of cell_position."""
    if not 0 <= col < cols:
        raise ValueError(f"col {col} outside [0, {cols})")
    if row < 0:
        raise ValueError(f"row must be >= 0, got {row}")
    return row * cols + col


def cell_rect(index: int, region: EffectiveRegion, rows: int, cols: int) -> CellRect:
    """Compute the source rectangle of one cell.

    Args:
        index: Cell index in [0, rows * cols).
        region: Effective region being tiled.
        rows: Grid rows (>= 1).
        cols: Grid columns (>= 1).

    Returns:
        CellRect with float coordinates in source space.

    Raises:
        ValueError: If the grid is invalid or index is out of range.

    Example:
        >>> region = EffectiveRegion(width=900, height=600)
        >>> cell_rect(8, region, 3, 3).to_tuple()
        (600.0, 400.0, 300.0, 200.0)
    """
    _require_grid(rows, cols)
    if not 0 <= index < rows * cols:
        raise ValueError(f"Cell index {index} outside [0, {rows * cols})")

    row, col = cell_position(index, cols)
    return CellRect(
        index=index,
        row=row,
        col=col,
        x=region.offset_x + col * region.width / cols,
        y=region.offset_y + row * region.height / rows,
        width=region.width / cols,
        height=region.height / rows,
    )


def iter_cell_rects(
    region: EffectiveRegion,
    rows: int,
    cols: int,
    indices: Iterable[int] | None = None,
) -> Iterator[CellRect]:
    """Yield cell rects for the given indices (all cells when None)."""
    _require_grid(rows, cols)
    selected = range(rows * cols) if indices is None else indices
    for index in selected:
        yield cell_rect(index, region, rows, cols)


def surface_size(region: EffectiveRegion, rows: int, cols: int) -> tuple[int, int]:
    """Pixel size of the scratch surface shared by every cell.

    Fractional slice sizes are truncated, with a 1px minimum per dimension.
    """
    _require_grid(rows, cols)
    return (
        max(1, math.floor(region.width / cols)),
        max(1, math.floor(region.height / rows)),
    )


class SliceSurface:
    """Reusable scratch buffer that cells are drawn into one at a time.

    The surface is owned by a single run. Callers must ``clear()`` before
    each draw; ``GridSlicer.extract`` does this for you.

    Example:
        >>> with SliceSurface((300, 200)) as surface:
        ...     surface.clear()
        ...     surface.image.size
        (300, 200)
    """

    __slots__ = ("_image", "_size")

    def __init__(self, size: tuple[int, int]) -> None:
        """Allocate the backing image.

        Args:
            size: (width, height) in pixels.

        Raises:
            SurfaceUnavailableError: If the buffer cannot be allocated.
        """
        width, height = size
        if width < 1 or height < 1:
            raise SurfaceUnavailableError(f"Invalid surface size {width}x{height}")
        try:
            self._image: Image.Image | None = Image.new(SURFACE_MODE, size, _CLEAR_COLOR)
        except (MemoryError, ValueError, OverflowError) as e:
            raise SurfaceUnavailableError(
                f"Could not allocate {width}x{height} surface: {e}"
            ) from e
        self._size = (width, height)

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    @property
    def image(self) -> Image.Image:
        """The backing image; valid until the next clear() or close()."""
        if self._image is None:
            raise SurfaceUnavailableError("Surface has been closed")
        return self._image

    @property
    def closed(self) -> bool:
        return self._image is None

    def clear(self) -> None:
        """Reset every pixel to transparent black."""
        self.image.paste(_CLEAR_COLOR, (0, 0, *self._size))

    def draw(
        self,
        source: Image.Image,
        rect: CellRect,
        resample: Image.Resampling = Image.Resampling.BICUBIC,
    ) -> None:
        """Draw the source pixels bounded by rect into the surface.

        Args:
            source: Source image to read from (not modified).
            rect: Cell rectangle in source coordinates.
            resample: Filter used when the rect is not an exact pixel copy.
        """
        target = self.image
        left, top, right, bottom = rect.pixel_box()
        if rect.is_pixel_aligned and (right - left, bottom - top) == self._size:
            patch = source.crop((left, top, right, bottom))
        else:
            patch = source.resize(self._size, resample=resample, box=rect.box)

        if patch.mode != SURFACE_MODE:
            patch = patch.convert(SURFACE_MODE)
        target.paste(patch, (0, 0))

    def close(self) -> None:
        """Release the backing image."""
        if self._image is not None:
            self._image.close()
            self._image = None

    def __enter__(self) -> SliceSurface:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class GridSlicer:
    """Extracts grid cells of an effective region from a source image.

    Example:
        >>> slicer = GridSlicer(image, region, rows=3, cols=3)
        >>> with slicer.open_surface() as surface:
        ...     rect = slicer.extract(4, surface)
        ...     surface.image.size
        (300, 200)
    """

    __slots__ = ("_cols", "_region", "_resample", "_rows", "_source")

    def __init__(
        self,
        source: Image.Image,
        region: EffectiveRegion,
        rows: int,
        cols: int,
        resample: Image.Resampling | str = Image.Resampling.BICUBIC,
    ) -> None:
        """Initialize the slicer.

        Args:
            source: Decoded source image.
            region: Effective region to tile.
            rows: Grid rows (>= 1).
            cols: Grid columns (>= 1).
            resample: PIL filter or one of the names in RESAMPLE_FILTERS.

        Raises:
            ValueError: If the grid or filter name is invalid.
        """
        _require_grid(rows, cols)
        if isinstance(resample, str):
            if resample not in RESAMPLE_FILTERS:
                raise ValueError(
                    f"Unknown resample filter {resample!r}. "
                    f"Valid options: {sorted(RESAMPLE_FILTERS)}"
                )
            resample = RESAMPLE_FILTERS[resample]
        self._source = source
        self._region = region
        self._rows = rows
        self._cols = cols
        self._resample = resample

    @property
    def region(self) -> EffectiveRegion:
        return self._region

    @property
    def total_cells(self) -> int:
        return self._rows * self._cols

    @property
    def surface_size(self) -> tuple[int, int]:
        return surface_size(self._region, self._rows, self._cols)

    def cell_rect(self, index: int) -> CellRect:
        return cell_rect(index, self._region, self._rows, self._cols)

    def cell_rects(self) -> list[CellRect]:
        """Return every cell rect in index order (grid preview)."""
        return list(iter_cell_rects(self._region, self._rows, self._cols))

    def open_surface(self) -> SliceSurface:
        """Allocate a scratch surface sized for this grid."""
        return SliceSurface(self.surface_size)

    def extract(self, index: int, surface: SliceSurface) -> CellRect:
        """Clear the surface and draw one cell into it.

        Args:
            index: Cell index in [0, rows * cols).
            surface: Scratch surface from open_surface().

        Returns:
            The CellRect that was drawn.

        Raises:
            ValueError: If index is out of range.
            SurfaceUnavailableError: If the surface is closed or mis-sized.
        """
        if surface.size != self.surface_size:
            raise SurfaceUnavailableError(
                f"Surface size {surface.size} does not match grid cell size "
                f"{self.surface_size}",
                cell=index,
            )
        rect = self.cell_rect(index)
        surface.clear()
        surface.draw(self._source, rect, self._resample)
        return rect
