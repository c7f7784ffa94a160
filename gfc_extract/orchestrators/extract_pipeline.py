"""Extraction pipeline — AOI to a single mosaicked raster.

Stages run in a strict order and any failure aborts the call:

1. **Variant** — resolve ``stack`` (fails before any file I/O).
2. **Tile selection** — tiles whose extent overlaps the AOI envelope.
3. **Name resolution** — per-tile file paths.
4. **Load & crop** — fan-out, one task per tile, joined before merging.
5. **Mosaic** — merge tiles (pass-through for a single tile).
6. **Reproject** (optional) — UTM zone of the mosaic's own centroid.
7. **Rescale** (optional) — reflectance composites only.
8. **Write** (optional) — when ``options.output_path`` is set.
9. **Metadata** (optional) — JSON sidecar when ``options.write_metadata``.

No state is kept between calls; each call is independent and reentrant.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from gfc_extract.activities.load_tiles import load_and_crop
from gfc_extract.activities.mosaic_tiles import mosaic
from gfc_extract.activities.reproject_mosaic import reproject_to_utm
from gfc_extract.activities.scale_reflectance import rescale_reflectance
from gfc_extract.activities.tile_grid import tiles_for
from gfc_extract.activities.write_metadata import write_metadata
from gfc_extract.activities.write_raster import write_raster
from gfc_extract.core.config import PipelineConfig
from gfc_extract.core.constants import DATASET_CRS
from gfc_extract.core.exceptions import UnsupportedVariantError
from gfc_extract.models.aoi import AreaOfInterest
from gfc_extract.models.metadata import ExtractionMetadata
from gfc_extract.models.options import ExtractOptions
from gfc_extract.models.raster import RasterStack
from gfc_extract.models.tile import TileId, sorted_tiles
from gfc_extract.models.variant import ProductVariant
from gfc_extract.utils.tile_paths import filenames_for

logger = logging.getLogger("gfc_extract.orchestrators.extract_pipeline")


def make_tile_mosaic(
    aoi: AreaOfInterest,
    data_folder: str | Path | None = None,
    *,
    stack: str | ProductVariant = "change",
    dataset: str | None = None,
    options: ExtractOptions | None = None,
    config: PipelineConfig | None = None,
) -> RasterStack:
    """Mosaic the tiles covering an AOI, cropped to its envelope.

    Args:
        aoi: Area of interest in any CRS.
        data_folder: Folder holding previously downloaded tiles; defaults
            to ``config.data_folder``.
        stack: ``"change"``, ``"first"``, or ``"last"``.
        dataset: Dataset version tag used in tile file names; defaults to
            ``config.dataset_version``.
        options: Mosaic tolerance (other fields are ignored here); defaults
            to ``config.default_options()``.
        config: Pipeline configuration; defaults to ``PipelineConfig()``.

    Returns:
        The mosaic in the dataset CRS with the variant's band names.

    Raises:
        UnsupportedVariantError: If ``stack`` is not a known variant.
        EmptyResultError: If the AOI is outside the dataset coverage.
        MissingTileFileError: If a required tile file is absent.
        BandCountMismatchError: If tile files hold the wrong band count.
        GridAlignmentError: If tiles cannot be merged.
    """
    variant = ProductVariant.from_name(stack)
    config = config or PipelineConfig()
    geographic_aoi = aoi.to_crs(DATASET_CRS)
    tiles = sorted_tiles(tiles_for(geographic_aoi))
    return _mosaic_tiles(
        geographic_aoi,
        tiles,
        variant,
        data_folder if data_folder is not None else config.data_path,
        dataset or config.dataset_version,
        options or config.default_options(),
        config,
    )


def extract_gfc(
    aoi: AreaOfInterest,
    data_folder: str | Path | None = None,
    *,
    to_utm: bool = False,
    stack: str | ProductVariant = "change",
    dataset: str | None = None,
    rescale: bool = False,
    options: ExtractOptions | None = None,
    config: PipelineConfig | None = None,
) -> RasterStack:
    """Extract a dataset product for an AOI from pre-downloaded tiles.

    Args:
        aoi: Area of interest in any CRS.
        data_folder: Folder holding previously downloaded tiles; defaults
            to ``config.data_folder``.
        to_utm: Reproject the result into the UTM zone of its centroid.
            Change layers use nearest neighbour; reflectance uses bilinear.
        stack: ``"change"`` (default), ``"first"``, or ``"last"``.
        dataset: Dataset version tag; defaults to ``config.dataset_version``.
        rescale: Convert first/last composites to float reflectance.
        options: Output path, overwrite, metadata, compression, and
            mosaic tolerance; defaults to ``config.default_options()``.
        config: Pipeline configuration; defaults to ``PipelineConfig()``.

    Returns:
        The final raster, no-data sentinel -1.

    Raises:
        UnsupportedVariantError: If ``stack`` is unknown, or ``rescale``
            is requested for the change layers.
        PipelineError: Any stage error, propagated unchanged.
    """
    variant = ProductVariant.from_name(stack)
    if rescale and not variant.is_reflectance:
        msg = f"rescale applies to the first/last composites, not '{variant.value}'"
        raise UnsupportedVariantError(msg)

    config = config or PipelineConfig()
    if data_folder is None:
        data_folder = config.data_path
    dataset = dataset or config.dataset_version
    options = options or config.default_options()
    start_time = time.monotonic()

    logger.info(
        "extract_gfc started | aoi=%s | stack=%s | dataset=%s | to_utm=%s | rescale=%s",
        aoi.name or "aoi",
        variant.value,
        dataset,
        to_utm,
        rescale,
    )

    geographic_aoi = aoi.to_crs(DATASET_CRS)
    tiles = sorted_tiles(tiles_for(geographic_aoi))
    result = _mosaic_tiles(geographic_aoi, tiles, variant, data_folder, dataset, options, config)

    if to_utm:
        result = reproject_to_utm(result, categorical=variant.categorical)

    if rescale:
        result = rescale_reflectance(result)

    if options.output_path is not None:
        raster_path = write_raster(result, options)
        if options.write_metadata:
            record = ExtractionMetadata.from_result(
                result,
                aoi=aoi,
                variant=variant,
                dataset=dataset,
                tiles=tiles,
                reprojected=to_utm,
                rescaled=rescale,
                tolerance=options.tolerance,
                duration_s=time.monotonic() - start_time,
            )
            write_metadata(record, raster_path)

    logger.info(
        "extract_gfc completed | aoi=%s | crs=%s | shape=%dx%d | duration=%.2fs",
        aoi.name or "aoi",
        result.crs,
        result.height,
        result.width,
        time.monotonic() - start_time,
    )
    return result


def _mosaic_tiles(
    geographic_aoi: AreaOfInterest,
    tiles: list[TileId],
    variant: ProductVariant,
    data_folder: str | Path,
    dataset: str,
    options: ExtractOptions,
    config: PipelineConfig,
) -> RasterStack:
    """Load and crop every tile in parallel, then merge them."""
    tile_files = {
        tile: filenames_for(tile, variant, dataset, data_folder) for tile in tiles
    }

    def _load(tile: TileId) -> RasterStack:
        logger.debug("Loading tile | tile=%s | files=%d", tile, len(tile_files[tile]))
        return load_and_crop(tile_files[tile], geographic_aoi, variant)

    workers = min(config.max_workers, len(tiles))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gfc-tile") as pool:
        # map() yields in submission order and re-raises the first failure.
        tile_stacks = list(pool.map(_load, tiles))

    return mosaic(tile_stacks, tolerance=options.tolerance)
