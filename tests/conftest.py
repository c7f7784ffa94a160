"""Shared pytest fixtures for the GFC extraction test suite.

Tiles are synthetic 10-degree GeoTIFFs at a coarse 1-degree resolution
(10 x 10 pixels), named exactly as the distributor names real tiles.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest

from gfc_extract.core.constants import DEFAULT_DATASET
from gfc_extract.models.tile import TileId
from gfc_extract.models.variant import ProductVariant
from gfc_extract.utils.tile_paths import filenames_for

TILE_PIXELS = 10
TILE_RES_DEG = 1.0

TileWriter = Callable[..., list[Path]]


def write_geotiff(
    path: Path,
    data: np.ndarray,
    *,
    west: float,
    north: float,
    res: float = TILE_RES_DEG,
    crs: str = "EPSG:4326",
    nodata: float | None = None,
) -> Path:
    """Write a ``(bands, rows, cols)`` array as a north-up GeoTIFF."""
    import rasterio
    from rasterio.transform import from_origin

    profile = {
        "driver": "GTiff",
        "height": data.shape[1],
        "width": data.shape[2],
        "count": data.shape[0],
        "dtype": str(data.dtype),
        "crs": crs,
        "transform": from_origin(west, north, res, res),
    }
    if nodata is not None:
        profile["nodata"] = nodata
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data)
    return path


@pytest.fixture()
def data_folder(tmp_path: Path) -> Path:
    """Empty folder to place synthetic tiles in."""
    folder = tmp_path / "tiles"
    folder.mkdir()
    return folder


@pytest.fixture()
def write_tile(data_folder: Path) -> TileWriter:
    """Factory writing every file of one tile for a variant.

    Band ``b`` of the tile is filled with ``fill + b`` unless ``values``
    (shape ``(bands, 10, 10)``) is given.
    """

    def _write(
        tile: TileId,
        variant: ProductVariant,
        *,
        fill: int = 10,
        values: np.ndarray | None = None,
        dataset: str = DEFAULT_DATASET,
        nodata: float | None = None,
    ) -> list[Path]:
        if values is None:
            values = np.stack(
                [
                    np.full((TILE_PIXELS, TILE_PIXELS), fill + band, dtype=np.uint8)
                    for band in range(variant.band_count)
                ]
            )
        paths = filenames_for(tile, variant, dataset, data_folder)
        bands_per_file = variant.band_count // len(paths)
        for index, path in enumerate(paths):
            chunk = values[index * bands_per_file : (index + 1) * bands_per_file]
            write_geotiff(path, chunk, west=tile.lon, north=tile.lat, nodata=nodata)
        return paths

    return _write
