"""Input/output collaborators for the slicing pipeline.

The pipeline works on an already-decoded image and returns archive bytes;
this package supplies the two edges around it.

Key Components:
    - decode_image_bytes / load_source_image: bytes or file -> SourceImage
    - ArchiveSink / ArchivePersistence: archive bytes -> file on disk
"""

from gridslice.io.loader import SUPPORTED_MIME_TYPES, decode_image_bytes, load_source_image
from gridslice.io.persistence import ArchivePersistence, ArchiveSink

__all__ = [
    "SUPPORTED_MIME_TYPES",
    "ArchivePersistence",
    "ArchiveSink",
    "decode_image_bytes",
    "load_source_image",
]
