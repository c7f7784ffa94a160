"""Raster loader and cropper — read one tile's files and crop to the AOI.

Each tile of a product variant is one or more single- or multi-band
GeoTIFFs sharing a grid.  The AOI is reprojected into the tile CRS and
its envelope, intersected with the tile extent, is snapped outward to
whole pixels; only that window is read.

Files are opened read-only inside ``with`` blocks so handles are
released on every exit path, including failures part-way through a
tile.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np

from gfc_extract.core.constants import NODATA_VALUE
from gfc_extract.core.exceptions import (
    BandCountMismatchError,
    EmptyResultError,
    GridAlignmentError,
    MissingTileFileError,
    PermanentError,
)
from gfc_extract.models.aoi import AreaOfInterest
from gfc_extract.models.raster import RasterStack
from gfc_extract.models.variant import ProductVariant

logger = logging.getLogger("gfc_extract.activities.load_tiles")

# Pixel fraction below which a crop edge counts as lying on a pixel edge.
_SNAP_EPSILON = 1e-6


class TileReadError(PermanentError):
    """A tile file exists but cannot be read as a raster."""

    default_stage = "load_tiles"
    default_code = "TILE_READ_FAILED"


def load_and_crop(
    paths: Sequence[str | Path],
    aoi: AreaOfInterest,
    variant: ProductVariant,
) -> RasterStack:
    """Read the files of one tile and crop them to the AOI envelope.

    Args:
        paths: Tile files in the variant's image order.
        aoi: Area of interest in any CRS.
        variant: Product variant; supplies the expected band names.

    Returns:
        A ``RasterStack`` on the tile grid, bands in file order, with
        source no-data cells set to the pipeline sentinel.

    Raises:
        MissingTileFileError: If any file is absent.
        TileReadError: If a file cannot be opened as a raster.
        GridAlignmentError: If the files of the tile do not share a grid.
        BandCountMismatchError: If the band total differs from the variant's.
        EmptyResultError: If the AOI envelope leaves no pixels in the tile.
    """
    import rasterio
    from rasterio.errors import RasterioIOError
    from rasterio.windows import transform as window_transform

    paths = [Path(p) for p in paths]
    if not paths:
        raise BandCountMismatchError(variant.band_count, 0, "No tile files given")
    for path in paths:
        if not path.is_file():
            raise MissingTileFileError(path)

    bands: list[np.ndarray] = []
    grid: tuple[Any, int, int, str] | None = None
    window = None
    out_transform = None

    for path in paths:
        try:
            with rasterio.open(path) as src:
                tile_crs = src.crs.to_string() if src.crs else ""
                this_grid = (src.transform, src.width, src.height, tile_crs)
                if grid is None:
                    grid = this_grid
                    window = _crop_window(aoi.to_crs(tile_crs), src, path)
                    out_transform = window_transform(window, src.transform)
                elif this_grid != grid:
                    msg = (
                        f"{path.name} does not share the grid of {paths[0].name} "
                        f"(transform/size/CRS differ)"
                    )
                    raise GridAlignmentError(msg, stage="load_tiles")
                data = src.read(window=window)
                bands.append(_to_sentinel(data, src.nodata))
        except RasterioIOError as exc:
            msg = f"Cannot read tile file {path}: {exc}"
            raise TileReadError(msg) from exc

        logger.debug("Tile file read | file=%s | bands=%d", path.name, bands[-1].shape[0])

    stacked = np.concatenate(bands, axis=0)
    if stacked.shape[0] != variant.band_count:
        raise BandCountMismatchError(
            variant.band_count,
            stacked.shape[0],
            f"Variant '{variant.value}' expects {variant.band_count} bands, "
            f"tile files {[p.name for p in paths]} hold {stacked.shape[0]}",
        )

    stack = RasterStack(
        data=stacked,
        transform=out_transform,
        crs=grid[3],  # type: ignore[index]
        band_names=variant.band_names,
        nodata=NODATA_VALUE,
    )
    logger.info(
        "Tile cropped | files=%d | shape=%dx%d | bounds=[%.4f, %.4f, %.4f, %.4f]",
        len(paths),
        stack.height,
        stack.width,
        *stack.bounds,
    )
    return stack


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _crop_window(aoi: AreaOfInterest, src: Any, path: Path) -> Any:
    """Pixel window covering the AOI envelope, snapped outward, clipped to the tile.

    Raises:
        EmptyResultError: If the envelope and tile extent leave no pixels.
    """
    from rasterio.windows import Window

    env_left, env_bottom, env_right, env_top = aoi.envelope.bounds
    left = max(env_left, src.bounds.left)
    right = min(env_right, src.bounds.right)
    bottom = max(env_bottom, src.bounds.bottom)
    top = min(env_top, src.bounds.top)
    if left >= right or bottom >= top:
        msg = f"AOI envelope does not overlap tile {path.name}"
        raise EmptyResultError(msg, stage="load_tiles")

    inverse = ~src.transform
    col_start, row_start = inverse * (left, top)
    col_stop, row_stop = inverse * (right, bottom)

    col_off = max(0, math.floor(min(col_start, col_stop) + _SNAP_EPSILON))
    row_off = max(0, math.floor(min(row_start, row_stop) + _SNAP_EPSILON))
    col_end = min(src.width, math.ceil(max(col_start, col_stop) - _SNAP_EPSILON))
    row_end = min(src.height, math.ceil(max(row_start, row_stop) - _SNAP_EPSILON))

    if col_end <= col_off or row_end <= row_off:
        msg = f"AOI envelope covers no whole pixel of tile {path.name}"
        raise EmptyResultError(msg, stage="load_tiles")

    return Window(col_off, row_off, col_end - col_off, row_end - row_off)


def _to_sentinel(data: np.ndarray, source_nodata: float | None) -> np.ndarray:
    """Widen integer data so the sentinel fits and map source no-data onto it."""
    if np.issubdtype(data.dtype, np.integer):
        out = data.astype(np.result_type(data.dtype, np.int16))
    else:
        out = data.copy()

    if source_nodata is not None:
        if np.isnan(source_nodata):
            invalid = np.isnan(data)
        else:
            invalid = data == source_nodata
        out[invalid] = NODATA_VALUE
    return out
