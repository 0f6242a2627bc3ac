"""Geometry primitives for gridslice.

This module provides immutable Pydantic models for the rectangles the
slicing pipeline works with. All coordinates are in source-image pixels
where (0, 0) is the top-left corner. Offsets and cell edges may be
fractional: a centered square crop of an odd-sized margin starts half a
pixel in, and grids that do not divide the image evenly produce
non-integer cell boundaries.
"""

from __future__ import annotations

from typing import NamedTuple, Self

from pydantic import BaseModel, Field

# Tolerance used when deciding whether a float coordinate sits on the pixel grid
_PIXEL_EPSILON = 1e-9


def _is_integral(value: float) -> bool:
    return abs(value - round(value)) < _PIXEL_EPSILON


class Size(BaseModel, frozen=True):
    """A 2D size representing width and height.

    Both dimensions must be strictly positive (> 0).

    Attributes:
        width: Horizontal extent in pixels.
        height: Vertical extent in pixels.
    """

    width: int = Field(..., gt=0, description="Width in pixels")
    height: int = Field(..., gt=0, description="Height in pixels")

    @property
    def area(self) -> int:
        """Calculate the area in square pixels."""
        return self.width * self.height

    def to_tuple(self) -> tuple[int, int]:
        """Convert to (width, height) tuple."""
        return (self.width, self.height)

    @classmethod
    def from_tuple(cls, size: tuple[int, int]) -> Self:
        """Create Size from (width, height) tuple."""
        return cls(width=size[0], height=size[1])


class GridPosition(NamedTuple):
    """Zero-based (row, col) of a grid cell."""

    row: int
    col: int


class EffectiveRegion(BaseModel, frozen=True):
    """The rectangle of the source image that gets tiled into the grid.

    Attributes:
        width: Region width in pixels (> 0).
        height: Region height in pixels (> 0).
        offset_x: Left edge within the source (>= 0, may be fractional).
        offset_y: Top edge within the source (>= 0, may be fractional).
    """

    width: int = Field(..., gt=0, description="Region width in pixels")
    height: int = Field(..., gt=0, description="Region height in pixels")
    offset_x: float = Field(0.0, ge=0, description="Left edge in the source")
    offset_y: float = Field(0.0, ge=0, description="Top edge in the source")

    @property
    def right(self) -> float:
        """Return the X coordinate of the right edge (exclusive)."""
        return self.offset_x + self.width

    @property
    def bottom(self) -> float:
        """Return the Y coordinate of the bottom edge (exclusive)."""
        return self.offset_y + self.height

    @property
    def size(self) -> Size:
        """Return the dimensions as a Size."""
        return Size(width=self.width, height=self.height)

    def to_tuple(self) -> tuple[float, float, int, int]:
        """Convert to (offset_x, offset_y, width, height) tuple."""
        return (self.offset_x, self.offset_y, self.width, self.height)


class CellRect(BaseModel, frozen=True):
    """Source rectangle of a single grid cell.

    The region is defined as:
    - Top-left: (x, y)
    - Bottom-right: (x + width, y + height) [exclusive]

    Attributes:
        index: Cell index in row-major order.
        row: Zero-based row of the cell.
        col: Zero-based column of the cell.
        x: Left edge in source coordinates.
        y: Top edge in source coordinates.
        width: Cell width (region width / cols).
        height: Cell height (region height / rows).
    """

    index: int = Field(..., ge=0)
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    x: float = Field(..., ge=0)
    y: float = Field(..., ge=0)
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)

    @property
    def right(self) -> float:
        """Return the X coordinate of the right edge (exclusive)."""
        return self.x + self.width

    @property
    def bottom(self) -> float:
        """Return the Y coordinate of the bottom edge (exclusive)."""
        return self.y + self.height

    @property
    def position(self) -> GridPosition:
        """Return the (row, col) of this cell."""
        return GridPosition(row=self.row, col=self.col)

    @property
    def box(self) -> tuple[float, float, float, float]:
        """Return the (left, top, right, bottom) box used by PIL."""
        return (self.x, self.y, self.right, self.bottom)

    @property
    def is_pixel_aligned(self) -> bool:
        """True when every edge falls exactly on the pixel grid."""
        return all(_is_integral(v) for v in self.box)

    def pixel_box(self) -> tuple[int, int, int, int]:
        """Return the box rounded to whole pixels.

        Only meaningful when ``is_pixel_aligned`` is True.
        """
        left, top, right, bottom = self.box
        return (round(left), round(top), round(right), round(bottom))

    def to_tuple(self) -> tuple[float, float, float, float]:
        """Convert to (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)
