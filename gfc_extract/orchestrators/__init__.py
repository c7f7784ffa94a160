"""Pipeline orchestration.

- extract_pipeline: make_tile_mosaic and extract_gfc entry points
"""
