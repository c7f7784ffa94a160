"""Mosaic engine — merge cropped tile rasters into one contiguous raster.

All stacks are placed on the grid of the first stack.  Every other
stack's origin must sit within ``tolerance`` of a pixel edge of that grid
(in each axis); larger offsets are a data-integrity failure.  Cells with
one valid contributor take its value, cells covered by several valid
contributors take their unweighted mean, and cells no stack covers with
data carry the no-data sentinel.

A single stack is returned as-is, without resampling.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from affine import Affine

from gfc_extract.core.constants import DEFAULT_MOSAIC_TOLERANCE
from gfc_extract.core.exceptions import (
    BandCountMismatchError,
    EmptyResultError,
    GridAlignmentError,
)
from gfc_extract.models.raster import RasterStack

logger = logging.getLogger("gfc_extract.activities.mosaic_tiles")

# Slack for floating-point noise when comparing offsets against the tolerance.
_FLOAT_SLACK = 1e-9


def mosaic(
    stacks: Sequence[RasterStack],
    tolerance: float = DEFAULT_MOSAIC_TOLERANCE,
) -> RasterStack:
    """Merge tile rasters sharing one grid into a single raster.

    Args:
        stacks: Cropped tile rasters, in tile order.
        tolerance: Maximum misalignment between grids as a fraction of
            one pixel (inclusive).

    Returns:
        The merged raster covering the union of all extents.

    Raises:
        EmptyResultError: If ``stacks`` is empty.
        BandCountMismatchError: If band names differ between stacks.
        GridAlignmentError: If CRS, resolution, or origin alignment
            differ beyond ``tolerance``, or a stack has no pixels.
    """
    if not stacks:
        msg = "No tile rasters to mosaic"
        raise EmptyResultError(msg, stage="mosaic_tiles")

    if len(stacks) == 1:
        logger.info("mosaic skipped | tiles=1 | pass-through")
        return stacks[0]

    reference = stacks[0]
    for index, stack in enumerate(stacks):
        _check_compatible(reference, stack, index, tolerance)

    res_x, res_y = reference.res
    origin_x, origin_y = reference.transform.c, reference.transform.f

    # Pixel offsets of each stack's top-left corner on the reference grid.
    offsets = [
        (
            round((stack.transform.f - origin_y) / -res_y),
            round((stack.transform.c - origin_x) / res_x),
        )
        for stack in stacks
    ]
    row_min = min(row for row, _ in offsets)
    col_min = min(col for _, col in offsets)
    height = max(row + s.height for (row, _), s in zip(offsets, stacks, strict=True)) - row_min
    width = max(col + s.width for (_, col), s in zip(offsets, stacks, strict=True)) - col_min

    total = np.zeros((reference.count, height, width), dtype=np.float64)
    contributors = np.zeros((reference.count, height, width), dtype=np.int32)

    for (row, col), stack in zip(offsets, stacks, strict=True):
        r0 = row - row_min
        c0 = col - col_min
        window = (slice(None), slice(r0, r0 + stack.height), slice(c0, c0 + stack.width))
        valid = stack.valid_mask()
        total[window] += np.where(valid, stack.data, 0)
        contributors[window] += valid

    dtype = reference.data.dtype
    covered = contributors > 0
    merged = np.full((reference.count, height, width), reference.nodata, dtype=np.float64)
    merged[covered] = total[covered] / contributors[covered]
    if np.issubdtype(dtype, np.integer):
        merged = np.rint(merged)

    transform = Affine(
        reference.transform.a,
        reference.transform.b,
        origin_x + col_min * reference.transform.a,
        reference.transform.d,
        reference.transform.e,
        origin_y + row_min * reference.transform.e,
    )

    result = reference.replace(data=merged.astype(dtype), transform=transform)
    logger.info(
        "mosaic completed | tiles=%d | shape=%dx%d | overlap_cells=%d",
        len(stacks),
        result.height,
        result.width,
        int((contributors > 1).sum()),
    )
    return result


def _check_compatible(
    reference: RasterStack,
    stack: RasterStack,
    index: int,
    tolerance: float,
) -> None:
    """Validate that ``stack`` can be merged onto ``reference``'s grid.

    Raises:
        BandCountMismatchError: If band names differ.
        GridAlignmentError: If the grids cannot be merged.
    """
    if stack.is_empty:
        msg = f"Tile raster {index} has no pixels ({stack.height}x{stack.width})"
        raise GridAlignmentError(msg)

    if stack.band_names != reference.band_names:
        raise BandCountMismatchError(
            reference.count,
            stack.count,
            f"Tile raster {index} has bands {list(stack.band_names)}, "
            f"expected {list(reference.band_names)}",
        )

    if stack.crs != reference.crs:
        msg = f"Tile raster {index} CRS {stack.crs} differs from {reference.crs}"
        raise GridAlignmentError(msg)

    if stack.nodata != reference.nodata and not (
        np.isnan(stack.nodata) and np.isnan(reference.nodata)
    ):
        msg = f"Tile raster {index} nodata {stack.nodata} differs from {reference.nodata}"
        raise GridAlignmentError(msg)

    if stack.transform.b or stack.transform.d or stack.transform.e >= 0:
        msg = f"Tile raster {index} is not on a north-up grid"
        raise GridAlignmentError(msg)

    ref_x, ref_y = reference.res
    res_x, res_y = stack.res
    if abs(res_x - ref_x) > tolerance * ref_x + _FLOAT_SLACK * ref_x or (
        abs(res_y - ref_y) > tolerance * ref_y + _FLOAT_SLACK * ref_y
    ):
        msg = (
            f"Tile raster {index} resolution ({res_x}, {res_y}) differs from "
            f"({ref_x}, {ref_y}) beyond tolerance {tolerance}"
        )
        raise GridAlignmentError(msg)

    shift_x = (stack.transform.c - reference.transform.c) / ref_x
    shift_y = (stack.transform.f - reference.transform.f) / ref_y
    misalign_x = abs(shift_x - round(shift_x))
    misalign_y = abs(shift_y - round(shift_y))
    if misalign_x > tolerance + _FLOAT_SLACK or misalign_y > tolerance + _FLOAT_SLACK:
        msg = (
            f"Tile raster {index} is misaligned by ({misalign_x:.4f}, {misalign_y:.4f}) "
            f"pixels; tolerance is {tolerance}"
        )
        raise GridAlignmentError(msg)
