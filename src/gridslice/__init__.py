"""gridslice: slice an image into a grid of tiles and bundle them as a zip."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gridslice")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.0.0"

__all__ = ["__version__"]
