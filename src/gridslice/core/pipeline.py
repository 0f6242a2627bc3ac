"""Slicing pipeline orchestration.

Sequences region resolution, per-cell extraction and encoding, and archive
finalization for one image, reporting a single 0-100 progress value.

Progress Weighting:
    - Slice generation: 0-50, ``round(done / total * 50)`` after each cell.
    - Fixed checkpoint: 60 once every cell has been added.
    - Packaging: ``60 + round(phase * 0.4)`` while the zip is written.
    - 100 on completion.
    Rounding is half-up. The reported sequence is non-decreasing and
    never repeats a value.

Concurrency:
    Cells are processed strictly one after another because they share a
    single scratch surface. Encoding and zip writing run in worker threads,
    so a run suspends at each cell and at each archive entry; those are the
    only points where an asyncio cancellation can land.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gridslice.config import settings
from gridslice.core.archive import ArchiveBuilder
from gridslice.core.dimensions import resolve_region
from gridslice.core.encoder import FormatEncoder
from gridslice.core.exceptions import EncodeFailedError, ProcessingFailedError
from gridslice.core.naming import archive_filename, slice_filename
from gridslice.core.slicer import GridSlicer
from gridslice.core.types import EncodedSlice, GridSettings, PipelineResult, SourceImage
from gridslice.geometry import GeometryValidator
from gridslice.utils.logging import (
    clear_cell_context,
    get_logger,
    run_context,
    set_correlation_context,
)

if TYPE_CHECKING:
    from PIL import Image

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]

GENERATION_WEIGHT = 50
PACKAGING_START = 60
PACKAGING_WEIGHT = 0.4


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


class ProgressReporter:
    """Forwards progress to a callback as non-decreasing, distinct integers.

    Values are clamped to [0, 100]; anything not above the last reported
    value is dropped.
    """

    __slots__ = ("_callback", "_last")

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self._last = -1

    @property
    def last(self) -> int | None:
        return None if self._last < 0 else self._last

    def report(self, percent: int) -> None:
        value = max(0, min(100, int(percent)))
        if value <= self._last:
            return
        self._last = value
        if self._callback is not None:
            self._callback(value)


def resolve_selection(selection: Iterable[int] | None, rows: int, cols: int) -> list[int]:
    """Return the cell indices a run will process.

    An empty or missing selection means every cell in ascending order.
    Otherwise the caller's order is kept and repeated indices are dropped.

    Raises:
        ValueError: If any index is outside [0, rows * cols).
    """
    total = rows * cols
    chosen = list(dict.fromkeys(selection or ()))
    if not chosen:
        return list(range(total))

    invalid = [
        i
        for i in chosen
        if isinstance(i, bool) or not isinstance(i, int) or not 0 <= i < total
    ]
    if invalid:
        raise ValueError(f"Selection contains cells outside [0, {total}): {invalid}")
    return chosen


@dataclass
class GridPipeline:
    """Runs the slice-encode-archive pipeline for one image at a time.

    Usage:
        pipeline = GridPipeline()
        result = await pipeline.run(
            source,
            GridSettings(rows=3, cols=3),
            selection={0, 4, 8},
            on_progress=print,
        )
        sink.persist(result.archive, result.filename)

    Attributes:
        encoder: Encoder used for every cell.
        resample: Filter name for sub-pixel extraction.
        compression: Zip compression method ("deflated" or "stored").
        compress_level: zlib level for "deflated".
        strict: When True, a cell that fails to encode fails the run;
            otherwise the cell is dropped and listed in failed_cells.
    """

    encoder: FormatEncoder = field(
        default_factory=lambda: FormatEncoder(quality=settings.ENCODE_QUALITY)
    )
    resample: str = field(default_factory=lambda: settings.RESAMPLE_FILTER)
    compression: str = field(default_factory=lambda: settings.ARCHIVE_COMPRESSION)
    compress_level: int = field(default_factory=lambda: settings.ARCHIVE_COMPRESS_LEVEL)
    strict: bool = field(default_factory=lambda: settings.STRICT_ENCODE)
    _validator: GeometryValidator = field(
        init=False, repr=False, default_factory=GeometryValidator
    )

    async def run(
        self,
        source: SourceImage,
        grid: GridSettings,
        selection: Iterable[int] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> PipelineResult:
        """Slice, encode and archive the selected cells.

        Args:
            source: Decoded image and its original filename.
            grid: Rows, columns, output format and crop mode.
            selection: Cell indices to export; empty or None for all.
            on_progress: Called with integer percentages 0-100.

        Returns:
            PipelineResult with the archive bytes and its download name.

        Raises:
            ValueError: If the selection references cells outside the grid.
            ProcessingFailedError: If any stage fails. The cause is logged
                and chained; no partial archive is returned.
        """
        cells = resolve_selection(selection, grid.rows, grid.cols)
        progress = ProgressReporter(on_progress)
        archive = ArchiveBuilder(self.compression, self.compress_level)

        with run_context(source.name):
            logger.info(
                "Starting slice run",
                width=source.width,
                height=source.height,
                rows=grid.rows,
                cols=grid.cols,
                format=grid.format.value,
                crop_mode=grid.crop_mode.value,
                cells=len(cells),
            )

            try:
                return await self._run(source, grid, cells, archive, progress)
            except Exception as e:
                logger.exception("Slice generation failed")
                archive.discard()
                raise ProcessingFailedError() from e

    async def _run(
        self,
        source: SourceImage,
        grid: GridSettings,
        cells: list[int],
        archive: ArchiveBuilder,
        progress: ProgressReporter,
    ) -> PipelineResult:
        region = resolve_region(source.width, source.height, grid.crop_mode)
        self._validator.validate_region(region, source.size)

        slicer = GridSlicer(source.image, region, grid.rows, grid.cols, self.resample)
        failed: list[int] = []
        total = len(cells)

        with slicer.open_surface() as surface:
            for done, index in enumerate(cells, start=1):
                set_correlation_context(cell=index)
                rect = slicer.extract(index, surface)
                self._validator.validate_cell(rect, region)

                encoded = await self._encode_cell(surface.image, source, grid, index)
                if encoded is None:
                    failed.append(index)
                else:
                    archive.add_slice(encoded)

                progress.report(round_half_up(done / total * GENERATION_WEIGHT))
            clear_cell_context()

        if not archive:
            raise EncodeFailedError(
                f"None of the {total} requested cells could be encoded",
                format=grid.format.value,
            )

        entries = archive.entry_names
        progress.report(PACKAGING_START)
        data = await archive.finalize(
            on_progress=lambda phase: progress.report(
                PACKAGING_START + round_half_up(phase * PACKAGING_WEIGHT)
            )
        )
        progress.report(100)

        if failed:
            logger.warning(
                "Archive is missing cells", missing=failed, present=len(entries)
            )
        logger.info("Slice run complete", entries=len(entries), size=len(data))

        return PipelineResult(
            archive=data,
            filename=archive_filename(source.name),
            entries=entries,
            failed_cells=tuple(failed),
            requested_cells=total,
        )

    async def _encode_cell(
        self,
        image: Image.Image,
        source: SourceImage,
        grid: GridSettings,
        index: int,
    ) -> EncodedSlice | None:
        """Encode the current surface; None when the cell is dropped."""
        try:
            blob = await self.encoder.encode_async(image, grid.format, cell=index)
        except EncodeFailedError as e:
            if self.strict:
                raise
            logger.warning("Dropping cell that failed to encode", error=str(e))
            return None

        return EncodedSlice(
            index=index,
            filename=slice_filename(source.name, index, grid.cols, grid.format),
            data=blob.data,
            mime_type=blob.mime_type,
        )


async def process_grid(
    source: SourceImage,
    grid: GridSettings,
    selection: Iterable[int] | None = None,
    on_progress: ProgressCallback | None = None,
    *,
    strict: bool | None = None,
) -> PipelineResult:
    """Run the pipeline with settings-derived defaults.

    Args:
        source: Decoded image and its original filename.
        grid: Grid settings for the run.
        selection: Cell indices to export; empty or None for all.
        on_progress: Progress callback (0-100).
        strict: Override settings.STRICT_ENCODE for this run.

    Returns:
        PipelineResult for the run.
    """
    pipeline = GridPipeline() if strict is None else GridPipeline(strict=strict)
    return await pipeline.run(source, grid, selection, on_progress)
