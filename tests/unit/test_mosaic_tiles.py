"""Tests for the mosaic engine.

Covers:
- Single-stack pass-through
- Adjacent tiles merged into one extent
- Overlapping cells averaged, no-data cells ignored
- Alignment tolerance boundary (inclusive)
- Band, CRS, and empty-input failures
"""

from __future__ import annotations

import logging

import numpy as np
import pytest
from affine import Affine

from gfc_extract.activities.mosaic_tiles import mosaic
from gfc_extract.core.exceptions import (
    BandCountMismatchError,
    EmptyResultError,
    GridAlignmentError,
)
from gfc_extract.models.raster import RasterStack

NAMES = ("treecover2000", "lossyear")


def _stack(
    value: float,
    *,
    west: float = 0.0,
    north: float = 10.0,
    shape: tuple[int, int] = (10, 10),
    res: float = 1.0,
    dtype: type = np.int16,
    names: tuple[str, ...] = NAMES,
    crs: str = "EPSG:4326",
) -> RasterStack:
    data = np.full((len(names), *shape), value, dtype=dtype)
    return RasterStack(
        data=data,
        transform=Affine(res, 0.0, west, 0.0, -res, north),
        crs=crs,
        band_names=names,
        nodata=-1,
    )


class TestPassThrough:
    def test_single_stack_returned_unchanged(self) -> None:
        stack = _stack(5)
        result = mosaic([stack])
        assert result is stack
        assert result.identical(stack)

    def test_empty_input_raises(self) -> None:
        with pytest.raises(EmptyResultError, match="No tile rasters"):
            mosaic([])


class TestMerge:
    def test_adjacent_tiles(self) -> None:
        west = _stack(1, west=0.0)
        east = _stack(2, west=10.0)
        result = mosaic([west, east])
        assert (result.height, result.width) == (10, 20)
        assert result.bounds == (0.0, 0.0, 20.0, 10.0)
        assert (result.data[:, :, :10] == 1).all()
        assert (result.data[:, :, 10:] == 2).all()

    def test_stacked_north_south(self) -> None:
        north = _stack(1, north=10.0)
        south = _stack(2, north=0.0)
        result = mosaic([south, north])
        assert result.bounds == (0.0, -10.0, 10.0, 10.0)
        assert (result.data[:, :10] == 1).all()
        assert (result.data[:, 10:] == 2).all()

    def test_overlap_is_mean(self) -> None:
        a = _stack(10, west=0.0)
        b = _stack(20, west=5.0)
        result = mosaic([a, b])
        assert result.width == 15
        assert (result.data[:, :, 5:10] == 15).all()
        assert (result.data[:, :, :5] == 10).all()
        assert (result.data[:, :, 10:] == 20).all()

    def test_integer_mean_is_rounded(self) -> None:
        a = _stack(10, west=0.0)
        b = _stack(13, west=5.0)
        result = mosaic([a, b])
        assert result.data.dtype == np.int16
        assert result.data[0, 0, 6] == 12

    def test_float_mean_is_exact(self) -> None:
        a = _stack(0.25, west=0.0, dtype=np.float32)
        b = _stack(0.5, west=5.0, dtype=np.float32)
        result = mosaic([a, b])
        assert result.data.dtype == np.float32
        assert result.data[0, 0, 6] == pytest.approx(0.375)

    def test_nodata_does_not_contribute(self) -> None:
        a = _stack(10, west=0.0)
        b = _stack(20, west=5.0)
        b.data[:, :, :2] = -1
        result = mosaic([a, b])
        # Columns 5-6 are only valid in a.
        assert (result.data[:, :, 5:7] == 10).all()
        assert (result.data[:, :, 7:10] == 15).all()

    def test_uncovered_cells_are_nodata(self) -> None:
        """Diagonal neighbours leave two empty corners."""
        a = _stack(1, west=0.0, north=10.0)
        b = _stack(2, west=10.0, north=0.0)
        result = mosaic([a, b])
        assert (result.height, result.width) == (20, 20)
        assert (result.data[:, 10:, :10] == -1).all()
        assert (result.data[:, :10, 10:] == -1).all()

    def test_logs_overlap(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="gfc_extract.activities.mosaic_tiles"):
            mosaic([_stack(1, west=0.0), _stack(2, west=9.0)])
        assert "mosaic completed" in caplog.text
        assert "overlap_cells=20" in caplog.text


class TestTolerance:
    def test_misalignment_at_tolerance_accepted(self) -> None:
        a = _stack(1, west=0.0)
        b = _stack(2, west=10.05)
        result = mosaic([a, b], tolerance=0.05)
        assert result.width == 20
        assert result.transform.c == 0.0

    def test_misalignment_beyond_tolerance_rejected(self) -> None:
        a = _stack(1, west=0.0)
        b = _stack(2, west=10.051)
        with pytest.raises(GridAlignmentError, match="misaligned"):
            mosaic([a, b], tolerance=0.05)

    def test_vertical_misalignment_rejected(self) -> None:
        a = _stack(1, north=10.0)
        b = _stack(2, north=0.2)
        with pytest.raises(GridAlignmentError, match="misaligned"):
            mosaic([a, b])

    def test_resolution_mismatch_rejected(self) -> None:
        a = _stack(1, res=1.0)
        b = _stack(2, west=10.0, res=0.5)
        with pytest.raises(GridAlignmentError, match="resolution"):
            mosaic([a, b])


class TestIncompatibleStacks:
    def test_band_names_differ(self) -> None:
        a = _stack(1)
        b = _stack(2, west=10.0, names=("Band3", "Band4"))
        with pytest.raises(BandCountMismatchError):
            mosaic([a, b])

    def test_band_count_differs(self) -> None:
        a = _stack(1)
        b = _stack(2, west=10.0, names=("treecover2000",))
        with pytest.raises(BandCountMismatchError) as exc_info:
            mosaic([a, b])
        assert (exc_info.value.expected, exc_info.value.actual) == (2, 1)

    def test_crs_differs(self) -> None:
        a = _stack(1)
        b = _stack(2, west=10.0, crs="EPSG:32631")
        with pytest.raises(GridAlignmentError, match="CRS"):
            mosaic([a, b])

    def test_empty_stack_rejected(self) -> None:
        a = _stack(1)
        b = _stack(2, west=10.0, shape=(0, 10))
        with pytest.raises(GridAlignmentError, match="no pixels"):
            mosaic([a, b])
