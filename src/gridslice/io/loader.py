"""Image loading for the slicing pipeline.

Decodes uploaded bytes into a SourceImage. Only PNG, JPEG and WebP
uploads are accepted, up to the configured size limit. Images are fully
decoded up front so the pixel data cannot change during a run.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from gridslice.config import settings
from gridslice.core.exceptions import ImageLoadError
from gridslice.core.types import SourceImage
from gridslice.utils.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "image/png",
        "image/jpeg",
        "image/webp",
        "image/jpg",
    }
)

# Camera JPEGs with embedded previews decode as MPO; they are still image/jpeg
_FORMAT_MIME_TYPES: dict[str, str] = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "MPO": "image/jpeg",
    "WEBP": "image/webp",
}

# 16-bit greyscale modes; PNG decodes these as "I" or "I;16"
_WIDE_INT_MODES = frozenset({"I", "I;16", "I;16B", "I;16L", "I;16N"})


def _normalize_mode(image: Image.Image) -> Image.Image:
    """Convert palette/greyscale/CMYK images to RGB or RGBA."""
    if image.mode in ("RGB", "RGBA"):
        return image
    if image.mode in _WIDE_INT_MODES:
        # Scale to 8 bits first; a direct convert clips everything above 255
        return image.convert("I").point(lambda v: v / 256).convert("L").convert("RGB")
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


def decode_image_bytes(
    data: bytes,
    name: str,
    *,
    max_bytes: int | None = None,
) -> SourceImage:
    """Decode uploaded bytes into a SourceImage.

    Args:
        data: Raw file contents.
        name: Original filename (used only for output naming).
        max_bytes: Upload size limit. Defaults to settings.MAX_UPLOAD_BYTES.

    Returns:
        SourceImage with a fully loaded RGB or RGBA image.

    Raises:
        ImageLoadError: If the upload is too large, undecodable, or not a
            supported format.
    """
    limit = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    if len(data) > limit:
        raise ImageLoadError(
            f"{name}: file is {len(data)} bytes, limit is {limit} bytes"
        )

    try:
        image = Image.open(BytesIO(data))
        fmt = image.format or ""
        mime = _FORMAT_MIME_TYPES.get(fmt) or Image.MIME.get(fmt, "")
        if mime not in SUPPORTED_MIME_TYPES:
            raise ImageLoadError(
                f"{name}: unsupported image type {mime or image.format!r}. "
                f"Supported: {sorted(SUPPORTED_MIME_TYPES)}"
            )
        image.load()
    except UnidentifiedImageError as e:
        raise ImageLoadError(f"{name}: not a recognized image") from e
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(f"{name}: failed to decode image: {e}") from e

    logger.debug(
        "Decoded image", image=name, mime=mime, size=image.size, mode=image.mode
    )
    return SourceImage(image=_normalize_mode(image), name=name)


def load_source_image(path: Path | str, *, max_bytes: int | None = None) -> SourceImage:
    """Read and decode an image file from disk.

    Raises:
        ImageLoadError: If the file cannot be read or decoded.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageLoadError(f"Cannot read {path}: {e}") from e
    return decode_image_bytes(data, path.name, max_bytes=max_bytes)
