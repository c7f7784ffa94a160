"""Rescale integer-encoded reflectance composites to physical reflectance.

The first/last composites store top-of-atmosphere reflectance as
integers; the dataset documents per-band linear scalings

    reflectance = (raw - 1) / factor

with factors Band3: 508, Band4: 254, Band5: 363, Band7: 423.  No-data
cells keep the sentinel value and are never scaled.
"""

from __future__ import annotations

import logging

import numpy as np

from gfc_extract.core.constants import REFLECTANCE_SCALE_FACTORS
from gfc_extract.core.exceptions import BandCountMismatchError
from gfc_extract.models.raster import RasterStack

logger = logging.getLogger("gfc_extract.activities.scale_reflectance")


def _factors(stack: RasterStack) -> np.ndarray:
    """Per-band scale factors, looked up by band name and shaped for broadcasting."""
    if stack.count != len(REFLECTANCE_SCALE_FACTORS):
        raise BandCountMismatchError(
            len(REFLECTANCE_SCALE_FACTORS),
            stack.count,
            f"Reflectance scaling needs {len(REFLECTANCE_SCALE_FACTORS)} bands, "
            f"got {stack.count}",
        )
    unknown = [name for name in stack.band_names if name not in REFLECTANCE_SCALE_FACTORS]
    if unknown:
        raise BandCountMismatchError(
            len(REFLECTANCE_SCALE_FACTORS),
            stack.count,
            f"No reflectance scale factor for bands {unknown}; "
            f"expected {list(REFLECTANCE_SCALE_FACTORS)}",
        )
    factors = [REFLECTANCE_SCALE_FACTORS[name] for name in stack.band_names]
    return np.asarray(factors, dtype=np.float64).reshape(-1, 1, 1)


def rescale_reflectance(stack: RasterStack) -> RasterStack:
    """Convert raw reflectance integers to float32 reflectance.

    Raises:
        BandCountMismatchError: If the stack is not exactly Band3, Band4,
            Band5 and Band7 in some order.
    """
    factors = _factors(stack)
    valid = stack.valid_mask()
    scaled = np.where(valid, (stack.data.astype(np.float64) - 1.0) / factors, stack.nodata)

    logger.info(
        "Reflectance rescaled | bands=%s | valid_cells=%d",
        ",".join(stack.band_names),
        int(valid.sum()),
    )
    return stack.replace(data=scaled.astype(np.float32))


def unscale_reflectance(stack: RasterStack) -> RasterStack:
    """Inverse of ``rescale_reflectance``: ``raw = value * factor + 1``.

    Returns int16 raw values; no-data cells keep the sentinel.

    Raises:
        BandCountMismatchError: If the stack is not exactly Band3, Band4,
            Band5 and Band7 in some order.
    """
    factors = _factors(stack)
    valid = stack.valid_mask()
    raw = np.where(valid, np.rint(stack.data.astype(np.float64) * factors + 1.0), stack.nodata)
    return stack.replace(data=raw.astype(np.int16))
