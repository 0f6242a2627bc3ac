"""Custom exceptions for the slicing pipeline.

Every failure raised by the pipeline derives from GridSliceError and
carries the cell index and output format involved, when known.
"""

from __future__ import annotations


class GridSliceError(Exception):
    """Base exception for all slicing pipeline errors."""

    def __init__(
        self,
        message: str,
        *,
        cell: int | None = None,
        format: str | None = None,  # noqa: A002
    ) -> None:
        """Initialize error with optional cell/format context.

        Args:
            message: Human-readable error description.
            cell: Grid cell index being processed when the error occurred.
            format: Output format involved (png, jpg, webp).
        """
        self.message = message
        self.cell = cell
        self.format = format
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with cell/format context if available."""
        parts = [self.message]
        if self.cell is not None:
            parts.append(f"cell={self.cell}")
        if self.format is not None:
            parts.append(f"format={self.format}")

        if len(parts) == 1:
            return parts[0]
        return f"{parts[0]} ({', '.join(parts[1:])})"


class SurfaceUnavailableError(GridSliceError):
    """Raised when no drawing surface can be acquired for extraction.

    This error is raised when:
    - The scratch surface cannot be allocated (dimensions too large)
    - The scratch surface is used after it was closed

    It is fatal to the run.
    """


class EncodeFailedError(GridSliceError):
    """Raised when a cell cannot be encoded to the target format.

    Covers encoder exceptions and encoders that return no data. The
    pipeline treats it as a per-cell failure unless strict mode is on.
    """


class ArchiveFinalizationError(GridSliceError):
    """Raised when accumulated slices cannot be written into the archive."""


class ImageLoadError(GridSliceError):
    """Raised when input bytes cannot be turned into a source image.

    This error is raised when:
    - The upload exceeds the configured size limit
    - The bytes are not a decodable image
    - The decoded format is not one of the supported MIME types
    """


class ProcessingFailedError(GridSliceError):
    """Single run-level failure reported by the pipeline.

    The underlying cause is logged and chained as ``__cause__``; callers
    only need to know that no archive was produced.
    """

    def __init__(self, message: str = "Processing failed") -> None:
        super().__init__(message)
