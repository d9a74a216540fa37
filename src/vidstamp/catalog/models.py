"""Catalog data models."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class FileCatalogEntry(BaseModel):
    """Dates known for one selected video.

    Attributes:
        path: Location of the file; used as the catalog key.
        creation_date: Filesystem creation time in display form.
        encoded_date: Date embedded in the container or stream tags in display
            form, or None when no usable tag exists.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    creation_date: str
    encoded_date: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def needs_update(self) -> bool:
        """Return True when the encoded date is missing or differs from the creation date."""
        return self.encoded_date is None or self.encoded_date != self.creation_date

    @property
    def dates_match(self) -> bool:
        return not self.needs_update


class CatalogLoadResult(BaseModel):
    """Entries produced by a catalog load plus per-file error messages."""

    entries: List[FileCatalogEntry] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


__all__ = ["FileCatalogEntry", "CatalogLoadResult"]
