"""Geometry validation utilities for gridslice.

This module provides containment checks for the rectangles the pipeline
derives: the effective region must lie inside the source image and every
cell rect must lie inside the effective region.
"""

from __future__ import annotations

from gridslice.geometry.primitives import CellRect, EffectiveRegion, Size

# Float slack for edges computed as offset + col * width / cols
_EDGE_TOLERANCE = 1e-6


class BoundsError(Exception):
    """Raised when a rectangle fails containment validation.

    Attributes:
        rect: The offending rectangle as an (x, y, width, height) tuple.
        bounds: The container it was validated against.
    """

    def __init__(
        self,
        message: str,
        *,
        rect: tuple[float, float, float, float],
        bounds: tuple[float, float, float, float],
    ) -> None:
        self.rect = rect
        self.bounds = bounds
        super().__init__(f"{message} (rect={rect}, bounds={bounds})")


class GeometryValidator:
    """Validator for derived rectangles against their containers.

    The validator is stateless and operates purely on the inputs provided
    to each method.
    """

    def validate_region(
        self,
        region: EffectiveRegion,
        source: Size,
        *,
        strict: bool = True,
    ) -> bool:
        """Validate that an effective region lies inside the source image.

        Checks that:
        1. offset_x + width <= source.width
        2. offset_y + height <= source.height

        Offsets are already constrained to >= 0 by Pydantic.

        Args:
            region: The region to validate.
            source: Source image dimensions.
            strict: If True, raise BoundsError on failure.
                If False, return False instead.

        Returns:
            True if the region is contained.

        Raises:
            BoundsError: If strict=True and the region exceeds the source.
        """
        violations: list[str] = []
        if region.right > source.width + _EDGE_TOLERANCE:
            violations.append(
                f"right edge ({region.right}) exceeds width ({source.width})"
            )
        if region.bottom > source.height + _EDGE_TOLERANCE:
            violations.append(
                f"bottom edge ({region.bottom}) exceeds height ({source.height})"
            )

        if violations and strict:
            raise BoundsError(
                f"Region out of bounds: {'; '.join(violations)}",
                rect=region.to_tuple(),
                bounds=(0, 0, source.width, source.height),
            )
        return not violations

    def validate_cell(
        self,
        rect: CellRect,
        region: EffectiveRegion,
        *,
        strict: bool = True,
    ) -> bool:
        """Validate that a cell rect lies inside the effective region.

        Args:
            rect: Cell rectangle to check.
            region: Effective region being tiled.
            strict: If True, raise BoundsError on failure.

        Returns:
            True if the cell is contained.

        Raises:
            BoundsError: If strict=True and the cell leaves the region.
        """
        is_valid = (
            rect.x >= region.offset_x - _EDGE_TOLERANCE
            and rect.y >= region.offset_y - _EDGE_TOLERANCE
            and rect.right <= region.right + _EDGE_TOLERANCE
            and rect.bottom <= region.bottom + _EDGE_TOLERANCE
        )
        if not is_valid and strict:
            raise BoundsError(
                f"Cell {rect.index} out of region",
                rect=rect.to_tuple(),
                bounds=region.to_tuple(),
            )
        return is_valid
