"""Slice encoding to PNG, JPEG and WebP.

Lossy formats use a fixed quality (92 by default, the 0.92 a canvas
export uses); PNG ignores it. JPEG has no alpha channel, so transparent
pixels are composited onto black before encoding, matching how a canvas
flattens a cleared surface.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from io import BytesIO

from PIL import Image

from gridslice.core.exceptions import EncodeFailedError
from gridslice.core.types import ExportFormat

# Quality bounds (PIL accepts 1-100)
_QUALITY_MIN = 1
_QUALITY_MAX = 100


@dataclass(frozen=True)
class FormatSpec:
    """How one export format is written and named."""

    extension: str
    mime_type: str
    pil_format: str
    lossy: bool


FORMAT_SPECS: dict[ExportFormat, FormatSpec] = {
    ExportFormat.png: FormatSpec("png", "image/png", "PNG", lossy=False),
    ExportFormat.jpg: FormatSpec("jpg", "image/jpeg", "JPEG", lossy=True),
    ExportFormat.webp: FormatSpec("webp", "image/webp", "WEBP", lossy=True),
}


def format_spec(fmt: ExportFormat | str) -> FormatSpec:
    """Look up the spec for a format (enum member or string value)."""
    return FORMAT_SPECS[ExportFormat(fmt)]


def mime_type_for(fmt: ExportFormat | str) -> str:
    """MIME type of a format (``jpg`` maps to ``image/jpeg``)."""
    return format_spec(fmt).mime_type


def extension_for(fmt: ExportFormat | str) -> str:
    """File extension (without dot) of a format."""
    return format_spec(fmt).extension


@dataclass(frozen=True)
class EncodedBlob:
    """Encoded bytes plus their MIME type."""

    data: bytes
    mime_type: str


class FormatEncoder:
    """Encodes extracted cell surfaces to compressed image bytes.

    Example:
        >>> encoder = FormatEncoder(quality=92)
        >>> blob = encoder.encode(Image.new("RGBA", (4, 4)), ExportFormat.jpg)
        >>> blob.mime_type
        'image/jpeg'
    """

    __slots__ = ("_quality",)

    def __init__(self, quality: int = 92) -> None:
        """Initialize the encoder.

        Args:
            quality: Quality 1-100 for lossy formats.

        Raises:
            ValueError: If quality is out of range.
        """
        if not _QUALITY_MIN <= quality <= _QUALITY_MAX:
            raise ValueError(
                f"quality must be {_QUALITY_MIN}-{_QUALITY_MAX}, got {quality}"
            )
        self._quality = quality

    @property
    def quality(self) -> int:
        return self._quality

    def encode(
        self,
        image: Image.Image,
        fmt: ExportFormat | str,
        *,
        cell: int | None = None,
    ) -> EncodedBlob:
        """Encode an image to the target format.

        Args:
            image: Surface image to encode (not modified).
            fmt: Target format.
            cell: Cell index, used only for error context.

        Returns:
            EncodedBlob with non-empty data.

        Raises:
            EncodeFailedError: If PIL fails or produces no data.
        """
        spec = format_spec(fmt)
        buffer = BytesIO()
        try:
            if spec.pil_format == "JPEG":
                self._flatten(image).save(buffer, format="JPEG", quality=self._quality)
            elif spec.lossy:
                image.save(buffer, format=spec.pil_format, quality=self._quality)
            else:
                image.save(buffer, format=spec.pil_format)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeFailedError(
                f"Encoder raised: {e}", cell=cell, format=spec.extension
            ) from e

        data = buffer.getvalue()
        if not data:
            raise EncodeFailedError(
                "Encoder returned no data", cell=cell, format=spec.extension
            )
        return EncodedBlob(data=data, mime_type=spec.mime_type)

    async def encode_async(
        self,
        image: Image.Image,
        fmt: ExportFormat | str,
        *,
        cell: int | None = None,
    ) -> EncodedBlob:
        """Encode in a worker thread so the event loop stays responsive."""
        return await asyncio.to_thread(self.encode, image, fmt, cell=cell)

    @staticmethod
    def _flatten(image: Image.Image) -> Image.Image:
        """Composite onto opaque black and drop alpha."""
        if image.mode == "RGB":
            return image
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
        return Image.alpha_composite(background, rgba).convert("RGB")
