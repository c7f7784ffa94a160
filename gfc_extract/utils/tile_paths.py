"""Deterministic tile file path resolution.

Tile files follow the distributor's naming convention:

    {data_folder}/Hansen_{dataset_version}_{image_name}_{NN}{N|S}_{NNN}{E|W}.tif

e.g. ``Hansen_GFC-2022-v1.10_lossyear_10N_020W.tif``.

Resolution is pure string composition: the same inputs always produce
the same paths, and nothing here touches the disk except
``missing_files``.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from gfc_extract.core.constants import FILE_PREFIX
from gfc_extract.models.tile import TileId, sorted_tiles
from gfc_extract.models.variant import ProductVariant


def file_root(dataset_version: str) -> str:
    """Common file name prefix for one dataset version, e.g. ``"Hansen_GFC-2022-v1.10_"``."""
    return f"{FILE_PREFIX}_{dataset_version}_"


def filenames_for(
    tile: TileId,
    variant: ProductVariant,
    dataset_version: str,
    data_folder: str | Path,
) -> list[Path]:
    """Build the ordered file paths holding one tile of a product variant.

    Args:
        tile: Tile identifier.
        variant: Product variant; one path per source image name.
        dataset_version: Version tag, e.g. ``"GFC-2022-v1.10"``.
        data_folder: Folder the tiles were downloaded to.

    Returns:
        Paths in the variant's image order.  Existence is not checked.
    """
    folder = Path(data_folder)
    root = file_root(dataset_version)
    return [folder / f"{root}{image}{tile.suffix}" for image in variant.image_names]


def required_files(
    tiles: Iterable[TileId],
    variant: ProductVariant,
    dataset_version: str,
    data_folder: str | Path,
) -> list[Path]:
    """All files a set of tiles needs, north-west tile first."""
    return [
        path
        for tile in sorted_tiles(tiles)
        for path in filenames_for(tile, variant, dataset_version, data_folder)
    ]


def missing_files(
    tiles: Iterable[TileId],
    variant: ProductVariant,
    dataset_version: str,
    data_folder: str | Path,
) -> list[Path]:
    """Required files that are not present on disk yet."""
    return [
        path
        for path in required_files(tiles, variant, dataset_version, data_folder)
        if not path.is_file()
    ]
