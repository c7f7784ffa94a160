"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Tiling scheme, naming, no-data, and scale-factor constants
- exceptions: Custom exception hierarchy
"""
