"""Shared pytest fixtures and configuration."""

from collections.abc import Callable, Iterator
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from gridslice.config import Settings
from gridslice.core.types import SourceImage
from gridslice.utils.logging import clear_correlation_context, configure_logging


@pytest.fixture(autouse=True)
def reset_logging_context() -> Iterator[None]:
    """Reset correlation context between tests."""
    clear_correlation_context()
    yield
    clear_correlation_context()


@pytest.fixture
def test_settings() -> Settings:
    """Create a Settings instance with test-safe defaults."""
    return Settings(
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
        STRICT_ENCODE=False,
    )


@pytest.fixture
def configure_test_logging() -> Iterator[None]:
    """Configure logging for tests with console output."""
    configure_logging(level="DEBUG", log_format="console")
    yield


def make_gradient(width: int, height: int, mode: str = "RGB") -> Image.Image:
    """Image where every pixel encodes its own coordinates.

    Red is x, green is y (both mod 256) and blue is constant, so any
    misplaced copy shows up as a pixel mismatch.
    """
    image = Image.new("RGB", (width, height))
    image.putdata([(x % 256, y % 256, 128) for y in range(height) for x in range(width)])
    return image.convert(mode) if mode != "RGB" else image


def encode_image(image: Image.Image, pil_format: str = "PNG") -> bytes:
    buffer = BytesIO()
    image.save(buffer, format=pil_format)
    return buffer.getvalue()


@pytest.fixture
def gradient_900x600() -> Image.Image:
    return make_gradient(900, 600)


@pytest.fixture
def source_900x600(gradient_900x600: Image.Image) -> SourceImage:
    return SourceImage(image=gradient_900x600, name="photo.jpeg")


@pytest.fixture
def small_source() -> SourceImage:
    """A 30x30 image that tiles evenly into a 3x3 grid."""
    return SourceImage(image=make_gradient(30, 30), name="tiny.png")


@pytest.fixture
def png_file(tmp_path: Path) -> Path:
    path = tmp_path / "photo.png"
    make_gradient(60, 40).save(path, format="PNG")
    return path


@pytest.fixture
def make_image() -> Callable[..., Image.Image]:
    """Factory fixture for coordinate-gradient images."""
    return make_gradient


@pytest.fixture
def image_bytes() -> Callable[..., bytes]:
    """Factory fixture that serializes an image in a PIL format."""
    return encode_image
