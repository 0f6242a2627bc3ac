"""Core algorithms for gridslice.

This package contains the slicing pipeline: crop-mode region resolution,
grid cell extraction, slice encoding, archive assembly and the
orchestrator that ties them together.

Public API:
    - resolve_region: Effective region for a crop mode.
    - GridSlicer / SliceSurface: Cell extraction into a reusable surface.
    - FormatEncoder: PNG/JPEG/WebP encoding.
    - ArchiveBuilder: Zip assembly with packaging progress.
    - GridPipeline / process_grid: End-to-end run with progress reporting.
"""

from gridslice.core.archive import ArchiveBuilder
from gridslice.core.dimensions import resolve_region
from gridslice.core.encoder import EncodedBlob, FormatEncoder, mime_type_for
from gridslice.core.exceptions import (
    ArchiveFinalizationError,
    EncodeFailedError,
    GridSliceError,
    ImageLoadError,
    ProcessingFailedError,
    SurfaceUnavailableError,
)
from gridslice.core.naming import archive_filename, slice_filename
from gridslice.core.pipeline import GridPipeline, ProgressReporter, process_grid
from gridslice.core.slicer import GridSlicer, SliceSurface, cell_position, cell_rect
from gridslice.core.types import (
    CropMode,
    EncodedSlice,
    ExportFormat,
    GridSettings,
    PipelineResult,
    SourceImage,
)

__all__ = [
    "ArchiveBuilder",
    "ArchiveFinalizationError",
    "CropMode",
    "EncodeFailedError",
    "EncodedBlob",
    "EncodedSlice",
    "ExportFormat",
    "FormatEncoder",
    "GridPipeline",
    "GridSettings",
    "GridSliceError",
    "GridSlicer",
    "ImageLoadError",
    "PipelineResult",
    "ProcessingFailedError",
    "ProgressReporter",
    "SliceSurface",
    "SourceImage",
    "SurfaceUnavailableError",
    "archive_filename",
    "cell_position",
    "cell_rect",
    "mime_type_for",
    "process_grid",
    "resolve_region",
    "slice_filename",
]
