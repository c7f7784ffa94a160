"""Tests for tile file naming and path resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from gfc_extract.models.tile import TileId, sorted_tiles, tile_suffix
from gfc_extract.models.variant import ProductVariant
from gfc_extract.utils.tile_paths import (
    file_root,
    filenames_for,
    missing_files,
    required_files,
)

DATASET = "GFC-2022-v1.10"


class TestTileSuffix:
    """Corner coordinates → file name fragment."""

    @pytest.mark.parametrize(
        ("lat", "lon", "expected"),
        [
            (10, -20, "_10N_020W.tif"),
            (-5, 33, "_05S_033E.tif"),
            (0, 0, "_00N_000E.tif"),
            (80, -180, "_80N_180W.tif"),
            (-50, 170, "_50S_170E.tif"),
        ],
    )
    def test_suffix(self, lat: int, lon: int, expected: str) -> None:
        assert tile_suffix(lat, lon) == expected

    def test_tile_id_suffix_delegates(self) -> None:
        assert TileId(lat=10, lon=-20).suffix == "_10N_020W.tif"


class TestFilenamesFor:
    """filenames_for composes one path per source image."""

    def test_change_variant_four_files(self) -> None:
        paths = filenames_for(TileId(10, -20), ProductVariant.CHANGE, DATASET, Path("/data"))
        assert [p.name for p in paths] == [
            "Hansen_GFC-2022-v1.10_treecover2000_10N_020W.tif",
            "Hansen_GFC-2022-v1.10_lossyear_10N_020W.tif",
            "Hansen_GFC-2022-v1.10_gain_10N_020W.tif",
            "Hansen_GFC-2022-v1.10_datamask_10N_020W.tif",
        ]
        assert all(p.parent == Path("/data") for p in paths)

    @pytest.mark.parametrize("variant", [ProductVariant.FIRST, ProductVariant.LAST])
    def test_reflectance_variant_one_file(self, variant: ProductVariant) -> None:
        paths = filenames_for(TileId(0, 30), variant, DATASET, "/data")
        assert paths == [Path(f"/data/Hansen_GFC-2022-v1.10_{variant.value}_00N_030E.tif")]

    def test_pure(self) -> None:
        """Same inputs always yield the same sequence."""
        args = (TileId(-10, 110), ProductVariant.CHANGE, DATASET, Path("/data"))
        assert filenames_for(*args) == filenames_for(*args)

    def test_does_not_touch_disk(self, tmp_path: Path) -> None:
        paths = filenames_for(TileId(10, 0), ProductVariant.FIRST, DATASET, tmp_path / "nope")
        assert not paths[0].exists()

    def test_file_root(self) -> None:
        assert file_root("GFC-2023-v1.11") == "Hansen_GFC-2023-v1.11_"


class TestRequiredFiles:
    def test_ordered_north_west_first(self) -> None:
        tiles = {TileId(0, 10), TileId(10, 0)}
        paths = required_files(tiles, ProductVariant.FIRST, DATASET, "/d")
        assert [p.name[-13:] for p in paths] == ["_10N_000E.tif", "_00N_010E.tif"]

    def test_missing_files(self, tmp_path: Path) -> None:
        tiles = {TileId(10, 0)}
        present = filenames_for(TileId(10, 0), ProductVariant.CHANGE, DATASET, tmp_path)[:2]
        for path in present:
            path.write_bytes(b"")
        missing = missing_files(tiles, ProductVariant.CHANGE, DATASET, tmp_path)
        assert [p.name.split("_")[2] for p in missing] == ["gain", "datamask"]

    def test_follows_tile_selection_order(self) -> None:
        tiles = {TileId(0, 0), TileId(10, 10), TileId(10, -10), TileId(0, -10)}
        paths = required_files(tiles, ProductVariant.CHANGE, DATASET, "/d")
        expected = [
            path
            for tile in sorted_tiles(tiles)
            for path in filenames_for(tile, ProductVariant.CHANGE, DATASET, "/d")
        ]
        assert paths == expected
        assert paths[0].name.endswith("_10N_010W.tif")
