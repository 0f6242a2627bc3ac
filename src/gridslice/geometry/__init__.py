"""Geometry module for gridslice.

This package provides the rectangle primitives and containment checks
used when tiling an image into a grid.

Key Components:
    - Primitives: Size, EffectiveRegion, CellRect, GridPosition
    - Validators: Containment checks for regions and cells

Example:
    from gridslice.geometry import EffectiveRegion, GeometryValidator, Size

    region = EffectiveRegion(width=600, height=600, offset_x=100, offset_y=0)
    GeometryValidator().validate_region(region, Size(width=800, height=600))
"""

from gridslice.geometry.primitives import CellRect, EffectiveRegion, GridPosition, Size
from gridslice.geometry.validators import BoundsError, GeometryValidator

__all__ = [
    "BoundsError",
    "CellRect",
    "EffectiveRegion",
    "GeometryValidator",
    "GridPosition",
    "Size",
]
