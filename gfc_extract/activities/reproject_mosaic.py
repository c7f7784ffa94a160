"""Reprojection of a mosaic into a local metric (UTM) coordinate system.

The UTM zone is chosen from the centroid of the raster's own bounding
box, not from the AOI, so the same extent always yields the same zone.

Resampling follows the data semantics: class codes (the forest change
layers) use nearest neighbour so no invalid intermediate codes appear;
continuous reflectance uses bilinear weighting.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from gfc_extract.core.constants import (
    DATASET_CRS,
    UTM_MAX_LAT,
    UTM_MIN_LAT,
    UTM_ZONE_WIDTH_DEG,
)
from gfc_extract.core.exceptions import UnsupportedCRSError
from gfc_extract.models.raster import RasterStack

logger = logging.getLogger("gfc_extract.activities.reproject_mosaic")

UTM_ZONE_COUNT = 60
UTM_NORTH_EPSG_BASE = 32600
UTM_SOUTH_EPSG_BASE = 32700


def utm_crs_for_lonlat(lon: float, lat: float) -> str:
    """Return the UTM CRS containing a WGS 84 coordinate.

    Zones are 6 degrees wide starting at -180; the hemisphere follows the
    latitude sign.  Longitude 180 belongs to zone 60.

    Returns:
        An EPSG string such as ``"EPSG:32610"`` (10N) or ``"EPSG:32710"`` (10S).

    Raises:
        UnsupportedCRSError: If the coordinate is not finite, outside
            -180..180 longitude, or outside the UTM latitude band.
    """
    if not (math.isfinite(lon) and math.isfinite(lat)):
        msg = f"Cannot choose a UTM zone for non-finite centroid ({lon}, {lat})"
        raise UnsupportedCRSError(msg)
    if not -180.0 <= lon <= 180.0:
        msg = f"Longitude {lon} is outside -180..180; no UTM zone applies"
        raise UnsupportedCRSError(msg)
    if not UTM_MIN_LAT <= lat <= UTM_MAX_LAT:
        msg = f"Latitude {lat} is outside the UTM band [{UTM_MIN_LAT}, {UTM_MAX_LAT}]"
        raise UnsupportedCRSError(msg)

    zone = min(UTM_ZONE_COUNT, int((lon + 180.0) // UTM_ZONE_WIDTH_DEG) + 1)
    base = UTM_NORTH_EPSG_BASE if lat >= 0 else UTM_SOUTH_EPSG_BASE
    return f"EPSG:{base + zone}"


def utm_crs_for(stack: RasterStack) -> str:
    """UTM CRS of the centroid of a raster's bounding box.

    Raises:
        UnsupportedCRSError: If the centroid has no UTM zone.
    """
    from rasterio.warp import transform_bounds
    from shapely.geometry import box

    bounds = stack.bounds
    if stack.crs != DATASET_CRS:
        bounds = transform_bounds(stack.crs, DATASET_CRS, *bounds)
    centroid = box(*bounds).centroid
    return utm_crs_for_lonlat(centroid.x, centroid.y)


def reproject(stack: RasterStack, target_crs: str, *, categorical: bool) -> RasterStack:
    """Warp a raster into ``target_crs``.

    Args:
        stack: Source raster.
        target_crs: Any CRS string understood by rasterio.
        categorical: Use nearest-neighbour resampling (class codes)
            instead of bilinear (continuous values).

    Returns:
        A new raster on the target grid with the same bands, dtype, and
        no-data sentinel.

    Raises:
        UnsupportedCRSError: If ``target_crs`` cannot be parsed.
    """
    from rasterio.crs import CRS
    from rasterio.errors import CRSError
    from rasterio.warp import Resampling, calculate_default_transform
    from rasterio.warp import reproject as warp_reproject

    try:
        dst_crs = CRS.from_user_input(target_crs)
    except CRSError as exc:
        msg = f"Invalid target CRS {target_crs!r}: {exc}"
        raise UnsupportedCRSError(msg) from exc

    src_crs = CRS.from_user_input(stack.crs)
    resampling = Resampling.nearest if categorical else Resampling.bilinear

    transform, width, height = calculate_default_transform(
        src_crs, dst_crs, stack.width, stack.height, *stack.bounds
    )
    destination = np.full((stack.count, height, width), stack.nodata, dtype=stack.data.dtype)

    for band_idx in range(stack.count):
        warp_reproject(
            source=stack.data[band_idx],
            destination=destination[band_idx],
            src_transform=stack.transform,
            src_crs=src_crs,
            src_nodata=stack.nodata,
            dst_transform=transform,
            dst_crs=dst_crs,
            dst_nodata=stack.nodata,
            resampling=resampling,
        )

    logger.info(
        "Reprojected | %s → %s | resampling=%s | shape=%dx%d",
        stack.crs,
        target_crs,
        resampling.name,
        height,
        width,
    )
    return stack.replace(data=destination, transform=transform, crs=dst_crs.to_string())


def reproject_to_utm(stack: RasterStack, *, categorical: bool) -> RasterStack:
    """Reproject a raster into the UTM zone of its own centroid."""
    return reproject(stack, utm_crs_for(stack), categorical=categorical)
