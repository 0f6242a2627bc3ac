"""Tests for grid cell geometry and extraction."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import patch

import pytest
from hypothesis import given
from hypothesis import strategies as st
from PIL import Image

from gridslice.core.exceptions import SurfaceUnavailableError
from gridslice.core.slicer import (
    GridSlicer,
    SliceSurface,
    cell_index,
    cell_position,
    cell_rect,
    iter_cell_rects,
    surface_size,
)
from gridslice.geometry import EffectiveRegion, GeometryValidator, GridPosition

grid_dim = st.integers(min_value=1, max_value=20)


class TestCellPosition:
    def test_row_major(self) -> None:
        assert cell_position(0, 3) == GridPosition(0, 0)
        assert cell_position(4, 3) == GridPosition(1, 1)
        assert cell_position(5, 3) == GridPosition(1, 2)
        assert cell_position(8, 3) == GridPosition(2, 2)

    def test_negative_index_rejected(self) -> None:
        with pytest.raises(ValueError):
            cell_position(-1, 3)

    @given(rows=grid_dim, cols=grid_dim)
    def test_index_position_bijection(self, rows: int, cols: int) -> None:
        positions = [cell_position(i, cols) for i in range(rows * cols)]
        assert len(set(positions)) == rows * cols
        for index, (row, col) in enumerate(positions):
            assert 0 <= row < rows
            assert 0 <= col < cols
            assert cell_index(row, col, cols) == index


class TestCellRect:
    def test_900x600_corners(self) -> None:
        region = EffectiveRegion(width=900, height=600)
        assert cell_rect(0, region, 3, 3).to_tuple() == (0, 0, 300, 200)
        assert cell_rect(8, region, 3, 3).to_tuple() == (600, 400, 300, 200)

    def test_offset_region(self) -> None:
        region = EffectiveRegion(width=600, height=600, offset_x=100)
        rect = cell_rect(0, region, 2, 2)
        assert rect.to_tuple() == (100, 0, 300, 300)

    def test_fractional_cells(self) -> None:
        region = EffectiveRegion(width=10, height=10)
        rect = cell_rect(1, region, 3, 3)
        assert rect.x == pytest.approx(10 / 3)
        assert rect.width == pytest.approx(10 / 3)
        assert not rect.is_pixel_aligned

    @pytest.mark.parametrize("index", [-1, 9])
    def test_out_of_range_index(self, index: int) -> None:
        with pytest.raises(ValueError):
            cell_rect(index, EffectiveRegion(width=9, height=9), 3, 3)

    @pytest.mark.parametrize(("rows", "cols"), [(0, 3), (3, 0)])
    def test_invalid_grid(self, rows: int, cols: int) -> None:
        with pytest.raises(ValueError):
            cell_rect(0, EffectiveRegion(width=9, height=9), rows, cols)

    @given(
        width=st.integers(min_value=1, max_value=4000),
        height=st.integers(min_value=1, max_value=4000),
        rows=grid_dim,
        cols=grid_dim,
    )
    def test_cells_tile_region(self, width: int, height: int, rows: int, cols: int) -> None:
        region = EffectiveRegion(width=width, height=height)
        rects = list(iter_cell_rects(region, rows, cols))
        validator = GeometryValidator()

        assert len(rects) == rows * cols
        for rect in rects:
            assert validator.validate_cell(rect, region)
            if rect.col + 1 < cols:
                neighbour = rects[rect.index + 1]
                assert neighbour.x == pytest.approx(rect.right)
            if rect.row + 1 < rows:
                below = rects[rect.index + cols]
                assert below.y == pytest.approx(rect.bottom)
        assert rects[-1].right == pytest.approx(region.right)
        assert rects[-1].bottom == pytest.approx(region.bottom)

    def test_iter_with_indices(self) -> None:
        region = EffectiveRegion(width=9, height=9)
        assert [r.index for r in iter_cell_rects(region, 3, 3, [8, 0])] == [8, 0]


class TestSurfaceSize:
    def test_even_split(self) -> None:
        assert surface_size(EffectiveRegion(width=900, height=600), 3, 3) == (300, 200)

    def test_truncates_fraction(self) -> None:
        assert surface_size(EffectiveRegion(width=10, height=10), 3, 3) == (3, 3)

    def test_minimum_one_pixel(self) -> None:
        assert surface_size(EffectiveRegion(width=5, height=2), 3, 20) == (1, 1)


class TestSliceSurface:
    def test_clear_resets_to_transparent(self) -> None:
        with SliceSurface((4, 4)) as surface:
            surface.image.paste((255, 0, 0, 255), (0, 0, 4, 4))
            surface.clear()
            assert set(surface.image.getdata()) == {(0, 0, 0, 0)}

    def test_close_makes_image_unavailable(self) -> None:
        surface = SliceSurface((2, 2))
        surface.close()
        assert surface.closed
        with pytest.raises(SurfaceUnavailableError):
            _ = surface.image

    def test_invalid_size(self) -> None:
        with pytest.raises(SurfaceUnavailableError):
            SliceSurface((0, 5))

    def test_allocation_failure(self) -> None:
        with (
            patch("gridslice.core.slicer.Image.new", side_effect=MemoryError),
            pytest.raises(SurfaceUnavailableError, match="Could not allocate"),
        ):
            SliceSurface((10, 10))


class TestGridSlicer:
    def test_aligned_cell_is_exact_copy(self, gradient_900x600: Image.Image) -> None:
        region = EffectiveRegion(width=900, height=600)
        slicer = GridSlicer(gradient_900x600, region, rows=3, cols=3)

        with slicer.open_surface() as surface:
            rect = slicer.extract(5, surface)
            expected = gradient_900x600.crop(rect.pixel_box()).convert("RGBA")
            assert surface.image.size == (300, 200)
            assert list(surface.image.getdata()) == list(expected.getdata())

    def test_offset_square_cell(self, make_image: Callable[..., Image.Image]) -> None:
        source = make_image(80, 60)
        region = EffectiveRegion(width=60, height=60, offset_x=10)
        slicer = GridSlicer(source, region, rows=2, cols=2)

        with slicer.open_surface() as surface:
            slicer.extract(1, surface)
            expected = source.crop((40, 0, 70, 30)).convert("RGBA")
            assert list(surface.image.getdata()) == list(expected.getdata())

    def test_fractional_cell_is_resampled(self, make_image: Callable[..., Image.Image]) -> None:
        source = make_image(10, 10)
        region = EffectiveRegion(width=10, height=10)
        slicer = GridSlicer(source, region, rows=3, cols=3, resample="bilinear")

        with slicer.open_surface() as surface:
            slicer.extract(4, surface)
            assert surface.image.size == (3, 3)
            assert surface.image.mode == "RGBA"
            alphas = {px[3] for px in surface.image.getdata()}
            assert alphas == {255}

    def test_surface_cleared_between_cells(self, make_image: Callable[..., Image.Image]) -> None:
        source = make_image(20, 20, "RGBA")
        transparent = Image.new("RGBA", (10, 10), (0, 0, 0, 0))
        source.paste(transparent, (10, 0))
        region = EffectiveRegion(width=20, height=20)
        slicer = GridSlicer(source, region, rows=2, cols=2)

        with slicer.open_surface() as surface:
            slicer.extract(0, surface)
            slicer.extract(1, surface)
            assert set(surface.image.getdata()) == {(0, 0, 0, 0)}

    def test_mismatched_surface_rejected(self, gradient_900x600: Image.Image) -> None:
        slicer = GridSlicer(gradient_900x600, EffectiveRegion(width=900, height=600), 3, 3)
        with SliceSurface((10, 10)) as surface, pytest.raises(SurfaceUnavailableError):
            slicer.extract(0, surface)

    def test_unknown_resample_name(self, gradient_900x600: Image.Image) -> None:
        with pytest.raises(ValueError, match="resample"):
            GridSlicer(
                gradient_900x600,
                EffectiveRegion(width=900, height=600),
                3,
                3,
                resample="sharpest",
            )

    def test_cell_rects_cover_grid(self, gradient_900x600: Image.Image) -> None:
        slicer = GridSlicer(gradient_900x600, EffectiveRegion(width=900, height=600), 2, 4)
        rects = slicer.cell_rects()
        assert slicer.total_cells == 8
        assert [r.index for r in rects] == list(range(8))

    def test_source_not_modified(self, gradient_900x600: Image.Image) -> None:
        before = gradient_900x600.tobytes()
        slicer = GridSlicer(gradient_900x600, EffectiveRegion(width=900, height=600), 3, 3)
        with slicer.open_surface() as surface:
            for index in range(slicer.total_cells):
                slicer.extract(index, surface)
        assert gradient_900x600.tobytes() == before
