"""Persist a raster stack as a compressed GeoTIFF.

Integer stacks (forest change layers, raw reflectance) are written as
8-bit unsigned with the in-memory sentinel mapped to 255, the 8-bit
no-data flag, unless a valid value collides with that flag; those fall
back to signed 16-bit.  Float stacks (rescaled reflectance) are written as
32-bit float keeping the sentinel as-is.  Band names are stored as band
descriptions.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from gfc_extract.core.constants import UINT8_NODATA
from gfc_extract.core.exceptions import RasterWriteError
from gfc_extract.models.options import Compression, ExtractOptions
from gfc_extract.models.raster import RasterStack

logger = logging.getLogger("gfc_extract.activities.write_raster")


def write_raster(stack: RasterStack, options: ExtractOptions) -> Path:
    """Write ``stack`` to ``options.output_path``.

    Returns:
        The written path.

    Raises:
        RasterWriteError: If no output path is set, the file exists and
            ``overwrite`` is false, or the write itself fails.
    """
    import rasterio
    from rasterio.errors import RasterioError

    if options.output_path is None:
        msg = "write_raster called without an output_path"
        raise RasterWriteError(msg)

    output_path = Path(options.output_path)
    if output_path.exists() and not options.overwrite:
        msg = f"Output {output_path} exists and overwrite is False"
        raise RasterWriteError(msg)

    data, dtype, nodata = _storage_encoding(stack)
    profile: dict[str, object] = {
        "driver": "GTiff",
        "height": stack.height,
        "width": stack.width,
        "count": stack.count,
        "dtype": dtype,
        "crs": stack.crs,
        "transform": stack.transform,
        "nodata": nodata,
    }
    if options.compression is not Compression.NONE:
        profile["compress"] = options.compression.value

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with rasterio.open(output_path, "w", **profile) as dst:
            dst.write(data)
            for band_idx, name in enumerate(stack.band_names, start=1):
                dst.set_band_description(band_idx, name)
    except (OSError, RasterioError) as exc:
        msg = f"Failed to write {output_path}: {exc}"
        raise RasterWriteError(msg) from exc

    logger.info(
        "Raster written | path=%s | dtype=%s | compression=%s | bands=%s",
        output_path,
        dtype,
        options.compression.value,
        ",".join(stack.band_names),
    )
    return output_path


def _storage_encoding(stack: RasterStack) -> tuple[np.ndarray, str, float]:
    """Return ``(data, dtype, nodata)`` as they should be stored on disk."""
    if not np.issubdtype(stack.data.dtype, np.integer):
        return stack.data.astype(np.float32), "float32", float(stack.nodata)

    valid = stack.valid_mask()
    values = stack.data[valid]
    if values.size and (values.min() < 0 or values.max() >= UINT8_NODATA):
        # Does not fit beside the 8-bit nodata flag; keep a signed 16-bit encoding.
        return stack.data.astype(np.int16), "int16", float(stack.nodata)

    encoded = np.where(valid, stack.data, UINT8_NODATA).astype(np.uint8)
    return encoded, "uint8", UINT8_NODATA
