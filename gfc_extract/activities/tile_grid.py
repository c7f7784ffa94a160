"""Tile grid calculator — map an AOI to the global tiles it covers.

The dataset is split into fixed 10-degree cells aligned on multiples of
10 degrees.  A cell is selected when its extent overlaps the envelope
(bounding box) of the AOI in the dataset CRS.  Cells that only share an
edge with the envelope are not selected, so an AOI that ends exactly on
a tile boundary does not pull in an empty neighbour.
"""

from __future__ import annotations

import logging
import math
from gfc_extract.core.constants import (
    COVERAGE_MAX_LAT,
    COVERAGE_MAX_LON,
    COVERAGE_MIN_LAT,
    COVERAGE_MIN_LON,
    DATASET_CRS,
    TILE_SIZE_DEG,
)
from gfc_extract.core.exceptions import EmptyResultError
from gfc_extract.models.aoi import AreaOfInterest
from gfc_extract.models.tile import TileId, sorted_tiles

logger = logging.getLogger("gfc_extract.activities.tile_grid")


def tiles_for(aoi: AreaOfInterest) -> frozenset[TileId]:
    """Return every dataset tile whose extent overlaps the AOI envelope.

    Args:
        aoi: Area of interest in any CRS; it is reprojected to the
            dataset CRS first.

    Returns:
        A non-empty set of tile identifiers.

    Raises:
        EmptyResultError: If the AOI lies entirely outside the dataset
            coverage.
    """
    geographic = aoi.to_crs(DATASET_CRS)
    min_lon, min_lat, max_lon, max_lat = geographic.envelope.bounds

    tiles = frozenset(
        TileId(lat=south + TILE_SIZE_DEG, lon=west)
        for south in _cell_edges(min_lat, max_lat)
        if COVERAGE_MIN_LAT <= south <= COVERAGE_MAX_LAT - TILE_SIZE_DEG
        for west in _cell_edges(min_lon, max_lon)
        if COVERAGE_MIN_LON <= west <= COVERAGE_MAX_LON - TILE_SIZE_DEG
    )

    if not tiles:
        msg = (
            f"AOI '{aoi.name or 'aoi'}' with bounds "
            f"[{min_lon:.4f}, {min_lat:.4f}, {max_lon:.4f}, {max_lat:.4f}] "
            "does not intersect the dataset coverage"
        )
        raise EmptyResultError(msg)

    logger.info(
        "Tiles selected | aoi=%s | count=%d | tiles=%s",
        aoi.name or "aoi",
        len(tiles),
        ",".join(str(t) for t in sorted_tiles(tiles)),
    )
    return tiles


def _cell_edges(low: float, high: float) -> range:
    """Lower edges of the grid cells overlapping ``[low, high]``.

    A degenerate interval lying on a cell edge selects the cell above it.
    """
    first = math.floor(low / TILE_SIZE_DEG) * TILE_SIZE_DEG
    last = math.ceil(high / TILE_SIZE_DEG) * TILE_SIZE_DEG - TILE_SIZE_DEG
    last = max(first, last)
    return range(first, last + 1, TILE_SIZE_DEG)
