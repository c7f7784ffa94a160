"""Write metadata activity — store an extraction record beside its raster.

The record goes to ``<raster path>.json`` (the raster suffix replaced), so
the same output path always yields the same sidecar path and a rerun
overwrites it together with the raster.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gfc_extract.core.exceptions import PermanentError
from gfc_extract.models.metadata import ExtractionMetadata

logger = logging.getLogger("gfc_extract.activities.write_metadata")

METADATA_SUFFIX = ".json"


class MetadataWriteError(PermanentError):
    """Raised when the metadata sidecar cannot be written."""

    default_stage = "write_metadata"
    default_code = "METADATA_WRITE_FAILED"


def metadata_path_for(raster_path: str | Path) -> Path:
    """Sidecar path for a raster: ``out.tif`` → ``out.json``."""
    return Path(raster_path).with_suffix(METADATA_SUFFIX)


def write_metadata(record: ExtractionMetadata, raster_path: str | Path) -> Path:
    """Write ``record`` as JSON next to ``raster_path``.

    Returns:
        The sidecar path.

    Raises:
        MetadataWriteError: If the file cannot be written.
    """
    path = metadata_path_for(raster_path)
    try:
        path.write_text(record.to_json(), encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to write metadata {path}: {exc}"
        raise MetadataWriteError(msg) from exc

    logger.info(
        "Metadata written | path=%s | tiles=%d | crs=%s",
        path,
        len(record.source.tiles),
        record.raster.crs,
    )
    return path
