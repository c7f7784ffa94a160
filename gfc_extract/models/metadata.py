"""Pydantic metadata model for an extraction result.

Describes one persisted raster: what was requested, which tiles it was
built from, what grid it sits on, and how it was processed.  Written as
a JSON sidecar next to the GeoTIFF.

The record is split into three nested sections:
- **source**: Dataset version, variant, tiles, and the AOI
- **raster**: CRS, grid shape, resolution, bounds, bands, no-data
- **processing**: Optional stages applied, tolerance, timing
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from gfc_extract.models.aoi import AreaOfInterest
    from gfc_extract.models.raster import RasterStack
    from gfc_extract.models.tile import TileId
    from gfc_extract.models.variant import ProductVariant

# Schema version for forward compatibility
SCHEMA_VERSION = "gfc-extract-v1"


class SourceMetadata(BaseModel):
    """Inputs of the extraction.

    Attributes:
        dataset: Dataset version tag (e.g. ``"GFC-2022-v1.10"``).
        variant: Product variant name (``"change"``, ``"first"``, ``"last"``).
        tiles: Tile labels in north-west-first order (e.g. ``"10N_020W"``).
        aoi_name: AOI label, empty if unnamed.
        aoi_crs: CRS the AOI was supplied in.
        aoi_bounds: AOI bounding box in WGS 84
            ``[min_lon, min_lat, max_lon, max_lat]``.
    """

    dataset: str = ""
    variant: str = ""
    tiles: list[str] = Field(default_factory=list)
    aoi_name: str = ""
    aoi_crs: str = ""
    aoi_bounds: list[float] = Field(default_factory=list)


class RasterMetadata(BaseModel):
    """Grid of the persisted raster.

    Attributes:
        crs: Raster CRS (e.g. ``"EPSG:32631"``).
        width: Columns.
        height: Rows.
        resolution: Pixel size ``[x, y]`` in CRS units.
        bounds: ``[left, bottom, right, top]`` in the raster CRS.
        band_names: Band names in band order.
        nodata: In-memory no-data sentinel.
        dtype: In-memory array dtype.
    """

    crs: str = ""
    width: int = 0
    height: int = 0
    resolution: list[float] = Field(default_factory=list)
    bounds: list[float] = Field(default_factory=list)
    band_names: list[str] = Field(default_factory=list)
    nodata: float = -1
    dtype: str = ""


class ProcessingMetadata(BaseModel):
    """How the raster was produced."""

    reprojected: bool = False
    rescaled: bool = False
    tolerance: float = 0.0
    timestamp: str = ""
    duration_s: float = 0.0


class ExtractionMetadata(BaseModel):
    """Top-level metadata record written beside an extracted raster."""

    schema_version: str = Field(default=SCHEMA_VERSION, alias="$schema")
    source: SourceMetadata = Field(default_factory=SourceMetadata)
    raster: RasterMetadata = Field(default_factory=RasterMetadata)
    processing: ProcessingMetadata = Field(default_factory=ProcessingMetadata)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_result(
        cls,
        result: RasterStack,
        *,
        aoi: AreaOfInterest,
        variant: ProductVariant,
        dataset: str,
        tiles: Iterable[TileId],
        reprojected: bool = False,
        rescaled: bool = False,
        tolerance: float = 0.0,
        duration_s: float = 0.0,
        timestamp: str = "",
    ) -> ExtractionMetadata:
        """Build a record from a finished extraction.

        Args:
            result: The final raster.
            aoi: The AOI as supplied by the caller.
            variant: Product variant extracted.
            dataset: Dataset version tag.
            tiles: Tiles the mosaic was built from, in order.
            reprojected: Whether the result was warped to UTM.
            rescaled: Whether reflectance was rescaled to floats.
            tolerance: Mosaic alignment tolerance used.
            duration_s: Elapsed time of the extraction.
            timestamp: ISO 8601 timestamp. Defaults to the current UTC time.
        """
        from gfc_extract.core.constants import DATASET_CRS

        if not timestamp:
            timestamp = datetime.now(UTC).isoformat()

        return cls(
            source=SourceMetadata(
                dataset=dataset,
                variant=variant.value,
                tiles=[str(tile) for tile in tiles],
                aoi_name=aoi.name,
                aoi_crs=aoi.crs,
                aoi_bounds=list(aoi.to_crs(DATASET_CRS).bounds),
            ),
            raster=RasterMetadata(
                crs=result.crs,
                width=result.width,
                height=result.height,
                resolution=list(result.res),
                bounds=list(result.bounds),
                band_names=list(result.band_names),
                nodata=float(result.nodata),
                dtype=str(result.data.dtype),
            ),
            processing=ProcessingMetadata(
                reprojected=reprojected,
                rescaled=rescaled,
                tolerance=tolerance,
                timestamp=timestamp,
                duration_s=round(duration_s, 3),
            ),
        )

    def to_json(self, *, indent: int = 2) -> str:
        """Serialise to a JSON string with the ``$schema`` alias."""
        return self.model_dump_json(indent=indent, by_alias=True)

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)  # type: ignore[return-value]
