"""Per-file catalog of creation and encoded dates."""

from .attributes import file_size, format_size, read_creation_time, write_timestamps
from .errors import AttributeWriteError, FilesystemReadError
from .loader import CatalogLoader
from .models import CatalogLoadResult, FileCatalogEntry

__all__ = [
    "AttributeWriteError",
    "CatalogLoadResult",
    "CatalogLoader",
    "FileCatalogEntry",
    "FilesystemReadError",
    "file_size",
    "format_size",
    "read_creation_time",
    "write_timestamps",
]
