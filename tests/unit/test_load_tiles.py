"""Tests for the tile loader and cropper.

Uses synthetic 10 x 10 tiles at 1-degree resolution, so pixel edges fall
on whole degrees.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pytest

from gfc_extract.activities.load_tiles import TileReadError, load_and_crop
from gfc_extract.core.exceptions import (
    BandCountMismatchError,
    EmptyResultError,
    GridAlignmentError,
    MissingTileFileError,
)
from gfc_extract.models.aoi import AreaOfInterest
from gfc_extract.models.tile import TileId
from gfc_extract.models.variant import ProductVariant
from tests.conftest import TileWriter, write_geotiff

TILE = TileId(lat=10, lon=0)


class TestCrop:
    """The AOI envelope is snapped outward to whole pixels."""

    def test_snaps_outward(self, write_tile: TileWriter) -> None:
        paths = write_tile(TILE, ProductVariant.FIRST)
        aoi = AreaOfInterest.from_bounds(2.5, 2.5, 5.5, 5.5)
        stack = load_and_crop(paths, aoi, ProductVariant.FIRST)
        assert (stack.height, stack.width) == (4, 4)
        assert stack.bounds == pytest.approx((2.0, 2.0, 6.0, 6.0))

    def test_pixel_aligned_envelope_is_exact(self, write_tile: TileWriter) -> None:
        paths = write_tile(TILE, ProductVariant.FIRST)
        aoi = AreaOfInterest.from_bounds(2.0, 2.0, 5.0, 5.0)
        stack = load_and_crop(paths, aoi, ProductVariant.FIRST)
        assert (stack.height, stack.width) == (3, 3)
        assert stack.bounds == pytest.approx((2.0, 2.0, 5.0, 5.0))

    def test_clipped_to_tile_extent(self, write_tile: TileWriter) -> None:
        """An AOI straddling the tile edge keeps only this tile's part."""
        paths = write_tile(TILE, ProductVariant.FIRST)
        aoi = AreaOfInterest.from_bounds(8.0, 2.0, 12.0, 5.0)
        stack = load_and_crop(paths, aoi, ProductVariant.FIRST)
        assert stack.bounds == pytest.approx((8.0, 2.0, 10.0, 5.0))

    def test_projected_aoi(self, write_tile: TileWriter) -> None:
        paths = write_tile(TILE, ProductVariant.FIRST)
        aoi = AreaOfInterest.from_bounds(
            500_000.0, 550_000.0, 510_000.0, 560_000.0, crs="EPSG:32631"
        )
        stack = load_and_crop(paths, aoi, ProductVariant.FIRST)
        # About 3.0-3.09E, 4.97-5.07N: one column, two rows.
        assert stack.crs == "EPSG:4326"
        assert (stack.height, stack.width) == (2, 1)

    def test_no_overlap_raises(self, write_tile: TileWriter) -> None:
        paths = write_tile(TILE, ProductVariant.FIRST)
        aoi = AreaOfInterest.from_bounds(20.0, 2.0, 25.0, 5.0)
        with pytest.raises(EmptyResultError, match="does not overlap"):
            load_and_crop(paths, aoi, ProductVariant.FIRST)


class TestBands:
    def test_change_files_stacked_in_order(self, write_tile: TileWriter) -> None:
        paths = write_tile(TILE, ProductVariant.CHANGE, fill=20)
        stack = load_and_crop(paths, AreaOfInterest.from_bounds(1, 1, 3, 3), ProductVariant.CHANGE)
        assert stack.band_names == ("treecover2000", "lossyear", "gain", "datamask")
        assert [int(stack.data[b, 0, 0]) for b in range(4)] == [20, 21, 22, 23]

    def test_integer_data_widened(self, write_tile: TileWriter) -> None:
        paths = write_tile(TILE, ProductVariant.CHANGE)
        stack = load_and_crop(paths, AreaOfInterest.from_bounds(1, 1, 3, 3), ProductVariant.CHANGE)
        assert stack.data.dtype == np.int16
        assert stack.nodata == -1

    def test_source_nodata_mapped_to_sentinel(self, write_tile: TileWriter) -> None:
        values = np.full((4, 10, 10), 7, dtype=np.uint8)
        values[:, 0, :] = 0
        paths = write_tile(TILE, ProductVariant.FIRST, values=values, nodata=0)
        stack = load_and_crop(paths, AreaOfInterest.from_bounds(0, 8, 2, 10), ProductVariant.FIRST)
        assert stack.data[:, 0, :].tolist() == [[-1, -1]] * 4
        assert stack.data[:, 1, :].tolist() == [[7, 7]] * 4

    def test_float_nan_nodata(self, data_folder: Path) -> None:
        path = data_folder / "Hansen_GFC-2022-v1.10_first_10N_000E.tif"
        values = np.full((4, 10, 10), 0.5, dtype=np.float32)
        values[0, 0, 0] = np.nan
        write_geotiff(path, values, west=0, north=10, nodata=float("nan"))
        stack = load_and_crop([path], AreaOfInterest.from_bounds(0, 9, 1, 10), ProductVariant.FIRST)
        assert stack.data[0, 0, 0] == -1
        assert stack.data[1, 0, 0] == pytest.approx(0.5)

    def test_band_count_mismatch(self, data_folder: Path) -> None:
        path = data_folder / "Hansen_GFC-2022-v1.10_first_10N_000E.tif"
        write_geotiff(path, np.ones((3, 10, 10), dtype=np.uint8), west=0, north=10)
        with pytest.raises(BandCountMismatchError) as exc_info:
            load_and_crop([path], AreaOfInterest.from_bounds(1, 1, 2, 2), ProductVariant.FIRST)
        assert (exc_info.value.expected, exc_info.value.actual) == (4, 3)

    def test_no_paths(self) -> None:
        with pytest.raises(BandCountMismatchError, match="No tile files"):
            load_and_crop([], AreaOfInterest.from_bounds(1, 1, 2, 2), ProductVariant.FIRST)


class TestFailures:
    def test_missing_file(self, write_tile: TileWriter) -> None:
        paths = write_tile(TILE, ProductVariant.CHANGE)
        paths[2].unlink()
        with pytest.raises(MissingTileFileError) as exc_info:
            load_and_crop(paths, AreaOfInterest.from_bounds(1, 1, 2, 2), ProductVariant.CHANGE)
        assert Path(exc_info.value.path) == paths[2]

    def test_unreadable_file(self, data_folder: Path) -> None:
        path = data_folder / "Hansen_GFC-2022-v1.10_first_10N_000E.tif"
        path.write_bytes(b"not a tiff")
        with pytest.raises(TileReadError, match="Cannot read tile file"):
            load_and_crop([path], AreaOfInterest.from_bounds(1, 1, 2, 2), ProductVariant.FIRST)

    def test_files_on_different_grids(self, write_tile: TileWriter) -> None:
        paths = write_tile(TILE, ProductVariant.CHANGE)
        write_geotiff(paths[1], np.ones((1, 10, 10), dtype=np.uint8), west=0.5, north=10)
        with pytest.raises(GridAlignmentError) as exc_info:
            load_and_crop(paths, AreaOfInterest.from_bounds(1, 1, 2, 2), ProductVariant.CHANGE)
        assert exc_info.value.stage == "load_tiles"


class TestLogging:
    def test_logs_crop(self, write_tile: TileWriter, caplog: pytest.LogCaptureFixture) -> None:
        paths = write_tile(TILE, ProductVariant.FIRST)
        with caplog.at_level(logging.INFO, logger="gfc_extract.activities.load_tiles"):
            load_and_crop(paths, AreaOfInterest.from_bounds(1, 1, 3, 3), ProductVariant.FIRST)
        assert "Tile cropped" in caplog.text
        assert "shape=2x2" in caplog.text
