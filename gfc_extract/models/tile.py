"""Identifier of one cell of the global tiling grid.

A tile is named by its north-west (top-left) corner in integer degrees.
The distributed file name fragment is a pure function of that corner,
for example ``(10, -20)`` → ``"_10N_020W.tif"``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gfc_extract.core.constants import (
    COVERAGE_MAX_LAT,
    COVERAGE_MAX_LON,
    COVERAGE_MIN_LAT,
    COVERAGE_MIN_LON,
    TILE_EXTENSION,
    TILE_SIZE_DEG,
)
from gfc_extract.core.exceptions import ValidationError

if TYPE_CHECKING:
    from shapely.geometry import Polygon


def lat_label(lat: int) -> str:
    """Two-digit latitude with hemisphere letter, e.g. ``-5`` → ``"05S"``."""
    hemisphere = "S" if lat < 0 else "N"
    return f"{abs(lat):02d}{hemisphere}"


def lon_label(lon: int) -> str:
    """Three-digit longitude with hemisphere letter, e.g. ``-20`` → ``"020W"``."""
    hemisphere = "W" if lon < 0 else "E"
    return f"{abs(lon):03d}{hemisphere}"


def tile_suffix(lat: int, lon: int) -> str:
    """File name fragment for a top-left corner, e.g. ``"_10N_020W.tif"``."""
    return f"_{lat_label(lat)}_{lon_label(lon)}{TILE_EXTENSION}"


@dataclass(frozen=True, slots=True, order=True)
class TileId:
    """A global grid cell, identified by its top-left corner.

    Ordering is by ``(lat, lon)``; use ``sorted_tiles`` for
    north-west-first order.

    Attributes:
        lat: Latitude of the northern edge (degrees, multiple of 10).
        lon: Longitude of the western edge (degrees, multiple of 10).
    """

    lat: int
    lon: int

    def __post_init__(self) -> None:
        if self.lat % TILE_SIZE_DEG or self.lon % TILE_SIZE_DEG:
            msg = (
                f"Tile corner ({self.lat}, {self.lon}) is not a multiple "
                f"of {TILE_SIZE_DEG} degrees"
            )
            raise ValidationError(msg, stage="tile_grid", code="INVALID_TILE")
        if not COVERAGE_MIN_LAT + TILE_SIZE_DEG <= self.lat <= COVERAGE_MAX_LAT:
            msg = f"Tile latitude {self.lat} is outside dataset coverage"
            raise ValidationError(msg, stage="tile_grid", code="INVALID_TILE")
        if not COVERAGE_MIN_LON <= self.lon <= COVERAGE_MAX_LON - TILE_SIZE_DEG:
            msg = f"Tile longitude {self.lon} is outside dataset coverage"
            raise ValidationError(msg, stage="tile_grid", code="INVALID_TILE")

    @property
    def suffix(self) -> str:
        """File name fragment for this tile, e.g. ``"_10N_020W.tif"``."""
        return tile_suffix(self.lat, self.lon)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """``(min_lon, min_lat, max_lon, max_lat)`` of the cell."""
        return (
            float(self.lon),
            float(self.lat - TILE_SIZE_DEG),
            float(self.lon + TILE_SIZE_DEG),
            float(self.lat),
        )

    @property
    def geometry(self) -> Polygon:
        """The cell extent as a shapely polygon in the dataset CRS."""
        from shapely.geometry import box

        return box(*self.bounds)

    def __str__(self) -> str:
        return f"{lat_label(self.lat)}_{lon_label(self.lon)}"


def sorted_tiles(tiles: Iterable[TileId]) -> list[TileId]:
    """Order tiles north to south, then west to east."""
    return sorted(tiles, key=lambda t: (-t.lat, t.lon))
