"""Shared pipeline constants — single source of truth.

Centralises the dataset's tiling scheme, file naming convention,
no-data sentinel, and reflectance scale factors so that no stage
carries its own copy of these literals.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Global tiling scheme
# ---------------------------------------------------------------------------

TILE_SIZE_DEG: int = 10
"""Edge length of one global grid cell in degrees."""

DATASET_CRS: str = "EPSG:4326"
"""Native (geographic) CRS of every tile."""

COVERAGE_MIN_LON: int = -180
COVERAGE_MAX_LON: int = 180
COVERAGE_MIN_LAT: int = -60
COVERAGE_MAX_LAT: int = 80
"""Dataset coverage in degrees. Tile top-left corners span lat 80..-50, lon -180..170."""

# ---------------------------------------------------------------------------
# File naming
# ---------------------------------------------------------------------------

FILE_PREFIX: str = "Hansen"
"""Prefix of every distributed tile file name."""

DEFAULT_DATASET: str = "GFC-2022-v1.10"
"""Dataset version tag used when the caller does not name one."""

TILE_EXTENSION: str = ".tif"

# ---------------------------------------------------------------------------
# Raster values
# ---------------------------------------------------------------------------

NODATA_VALUE: int = -1
"""In-memory no-data sentinel for every product."""

UINT8_NODATA: int = 255
"""No-data flag used when an integer stack is persisted as 8-bit unsigned."""

DEFAULT_MOSAIC_TOLERANCE: float = 0.05
"""Maximum grid misalignment between merged tiles, as a fraction of one pixel."""

REFLECTANCE_SCALE_FACTORS: dict[str, int] = {
    "Band3": 508,
    "Band4": 254,
    "Band5": 363,
    "Band7": 423,
}
"""Per-band divisors for ``(raw - 1) / factor`` top-of-atmosphere reflectance."""

# ---------------------------------------------------------------------------
# UTM
# ---------------------------------------------------------------------------

UTM_ZONE_WIDTH_DEG: int = 6
UTM_MIN_LAT: float = -80.0
UTM_MAX_LAT: float = 84.0
