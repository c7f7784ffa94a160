"""Pipeline stages.

Each stage is a pure function of its inputs (file reads aside):

- tile_grid: AOI → set of intersecting tile ids
- load_tiles: tile files → cropped RasterStack
- mosaic_tiles: RasterStacks → merged RasterStack
- reproject_mosaic: RasterStack → UTM RasterStack
- scale_reflectance: raw reflectance → float reflectance
- write_raster: RasterStack → GeoTIFF
- write_metadata: extraction record → JSON sidecar
"""
