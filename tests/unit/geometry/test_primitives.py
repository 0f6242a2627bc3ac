"""Tests for geometry primitives."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gridslice.geometry import CellRect, EffectiveRegion, GridPosition, Size


class TestSize:
    def test_valid(self) -> None:
        size = Size(width=900, height=600)
        assert size.area == 540_000
        assert size.to_tuple() == (900, 600)
        assert Size.from_tuple((900, 600)) == size

    @pytest.mark.parametrize(("width", "height"), [(0, 10), (10, 0), (-1, 5)])
    def test_non_positive_rejected(self, width: int, height: int) -> None:
        with pytest.raises(ValidationError):
            Size(width=width, height=height)

    def test_frozen(self) -> None:
        size = Size(width=1, height=1)
        with pytest.raises(ValidationError):
            size.width = 2  # type: ignore[misc]


class TestEffectiveRegion:
    def test_edges(self) -> None:
        region = EffectiveRegion(width=600, height=600, offset_x=100.5, offset_y=0)
        assert region.right == 700.5
        assert region.bottom == 600
        assert region.size == Size(width=600, height=600)
        assert region.to_tuple() == (100.5, 0.0, 600, 600)

    def test_offsets_default_to_zero(self) -> None:
        region = EffectiveRegion(width=10, height=20)
        assert (region.offset_x, region.offset_y) == (0.0, 0.0)

    def test_negative_offset_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EffectiveRegion(width=10, height=10, offset_x=-1)


class TestCellRect:
    def test_aligned_rect(self) -> None:
        rect = CellRect(index=8, row=2, col=2, x=600, y=400, width=300, height=200)
        assert rect.box == (600, 400, 900, 600)
        assert rect.position == GridPosition(row=2, col=2)
        assert rect.is_pixel_aligned
        assert rect.pixel_box() == (600, 400, 900, 600)
        assert rect.to_tuple() == (600, 400, 300, 200)

    def test_fractional_rect_not_aligned(self) -> None:
        rect = CellRect(index=1, row=0, col=1, x=10 / 3, y=0, width=10 / 3, height=5)
        assert not rect.is_pixel_aligned
        assert rect.right == pytest.approx(20 / 3)

    def test_half_pixel_offset_not_aligned(self) -> None:
        rect = CellRect(index=0, row=0, col=0, x=0.5, y=0, width=3, height=3)
        assert not rect.is_pixel_aligned

    def test_zero_width_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CellRect(index=0, row=0, col=0, x=0, y=0, width=0, height=1)
