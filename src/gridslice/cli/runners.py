"""CLI runners for slicing and previewing.

This module provides the execution logic for the CLI commands, bridging
the CLI interface to the loader, the pipeline and archive persistence.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gridslice.core.dimensions import resolve_region
from gridslice.core.pipeline import GridPipeline, ProgressCallback
from gridslice.core.slicer import GridSlicer
from gridslice.core.types import CropMode, ExportFormat, GridSettings
from gridslice.io.loader import load_source_image
from gridslice.io.persistence import ArchivePersistence, ArchiveSink
from gridslice.utils.logging import get_logger


@dataclass
class SliceRunResult:
    """Result from `gridslice slice`."""

    archive_path: Path
    entries: list[str]
    failed_cells: list[int] = field(default_factory=list)
    requested_cells: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "archive": str(self.archive_path),
            "entries": self.entries,
            "entry_count": len(self.entries),
            "failed_cells": self.failed_cells,
            "requested_cells": self.requested_cells,
        }


@dataclass(frozen=True)
class PreviewResult:
    """Result from `gridslice preview`."""

    image: str
    width: int
    height: int
    region: tuple[float, float, int, int]
    cell_size: tuple[int, int]
    cells: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        return {
            "image": self.image,
            "width": self.width,
            "height": self.height,
            "region": {
                "offset_x": self.region[0],
                "offset_y": self.region[1],
                "width": self.region[2],
                "height": self.region[3],
            },
            "cell_size": list(self.cell_size),
            "cells": self.cells,
        }


def run_slice(  # noqa: PLR0913
    *,
    image_path: Path,
    rows: int,
    cols: int,
    fmt: ExportFormat,
    crop_mode: CropMode,
    selection: Iterable[int] = (),
    output_dir: Path,
    strict: bool | None = None,
    on_progress: ProgressCallback | None = None,
    sink: ArchiveSink | None = None,
) -> SliceRunResult:
    """Load an image, run the pipeline and persist the archive."""
    logger = get_logger(__name__)

    source = load_source_image(image_path)
    grid = GridSettings(rows=rows, cols=cols, format=fmt, crop_mode=crop_mode)
    pipeline = GridPipeline() if strict is None else GridPipeline(strict=strict)

    result = asyncio.run(pipeline.run(source, grid, list(selection), on_progress))

    sink = sink or ArchivePersistence(output_dir)
    archive_path = sink.persist(result.archive, result.filename)
    logger.info("Slices exported", archive=str(archive_path), entries=result.entry_count)

    return SliceRunResult(
        archive_path=archive_path,
        entries=list(result.entries),
        failed_cells=list(result.failed_cells),
        requested_cells=result.requested_cells,
    )


def run_preview(
    *,
    image_path: Path,
    rows: int,
    cols: int,
    crop_mode: CropMode,
) -> PreviewResult:
    """Compute the effective region and every cell rect without encoding."""
    source = load_source_image(image_path)
    region = resolve_region(source.width, source.height, crop_mode)
    slicer = GridSlicer(source.image, region, rows, cols)

    cells = [
        {
            "index": rect.index,
            "row": rect.row + 1,
            "col": rect.col + 1,
            "x": rect.x,
            "y": rect.y,
            "width": rect.width,
            "height": rect.height,
        }
        for rect in slicer.cell_rects()
    ]
    return PreviewResult(
        image=source.name,
        width=source.width,
        height=source.height,
        region=region.to_tuple(),
        cell_size=slicer.surface_size,
        cells=cells,
    )
