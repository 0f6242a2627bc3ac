"""Effective region resolution for crop modes.

Maps source dimensions and a crop mode to the rectangle that gets tiled.
"""

from __future__ import annotations

from gridslice.core.types import CropMode
from gridslice.geometry import EffectiveRegion


def resolve_region(width: int, height: int, crop_mode: CropMode | str) -> EffectiveRegion:
    """Compute the region of the source that will be sliced.

    - ``original``: the full image with zero offsets.
    - ``square``: the largest centered square; offsets may be half pixels
      when the margin is odd.

    Args:
        width: Source width in pixels (> 0).
        height: Source height in pixels (> 0).
        crop_mode: Crop mode (enum member or its string value).

    Returns:
        EffectiveRegion contained within the source bounds.

    Raises:
        ValueError: If dimensions are not positive or crop_mode is unknown.

    Example:
        >>> resolve_region(800, 600, CropMode.square).to_tuple()
        (100.0, 0.0, 600, 600)
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Source dimensions must be positive, got {width}x{height}")

    mode = CropMode(crop_mode)

    if mode is CropMode.square:
        min_dim = min(width, height)
        return EffectiveRegion(
            width=min_dim,
            height=min_dim,
            offset_x=(width - min_dim) / 2,
            offset_y=(height - min_dim) / 2,
        )

    return EffectiveRegion(width=width, height=height, offset_x=0.0, offset_y=0.0)
