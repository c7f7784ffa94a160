"""Data models and schemas.

Defines the data structures used throughout the pipeline:
- AreaOfInterest: Polygonal AOI with its CRS
- TileId: One cell of the global 10-degree grid
- ProductVariant: change / first / last layer stacks
- RasterStack: Multi-band raster with a required no-data sentinel
- ExtractOptions: Mosaic tolerance and GeoTIFF writer options
- ExtractionMetadata: JSON record written beside a persisted raster
"""

from gfc_extract.models.aoi import AreaOfInterest
from gfc_extract.models.metadata import ExtractionMetadata
from gfc_extract.models.options import Compression, ExtractOptions
from gfc_extract.models.raster import RasterStack
from gfc_extract.models.tile import TileId, sorted_tiles, tile_suffix
from gfc_extract.models.variant import ProductVariant

__all__ = [
    "AreaOfInterest",
    "Compression",
    "ExtractOptions",
    "ExtractionMetadata",
    "ProductVariant",
    "RasterStack",
    "TileId",
    "sorted_tiles",
    "tile_suffix",
]
