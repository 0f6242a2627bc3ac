"""CLI module for gridslice.

Provides the command-line interface for slicing images into grid tiles
and previewing grid geometry.
"""

from __future__ import annotations

from gridslice.cli.main import app

__all__ = ["app"]
