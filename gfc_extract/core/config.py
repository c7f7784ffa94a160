"""Pipeline configuration loaded from environment variables.

All values have defaults matching the published dataset layout, so a
bare ``PipelineConfig()`` is usable in tests and notebooks.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out
    of its valid range.  Bad configuration is caught before any tile
    file is touched.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from gfc_extract.core.constants import DEFAULT_DATASET, DEFAULT_MOSAIC_TOLERANCE
from gfc_extract.core.exceptions import PipelineError, ValidationError
from gfc_extract.models.options import MAX_TOLERANCE, Compression, ExtractOptions


class ConfigValidationError(PipelineError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Immutable pipeline configuration.

    Attributes:
        data_folder: Folder holding previously downloaded tile files.
        dataset_version: Dataset version tag used in tile file names.
        mosaic_tolerance: Maximum tile misalignment as a fraction of a pixel.
        max_workers: Thread pool size for per-tile load and crop.
        compression: GeoTIFF codec name for persisted output.
    """

    data_folder: str = "."
    dataset_version: str = DEFAULT_DATASET
    mosaic_tolerance: float = DEFAULT_MOSAIC_TOLERANCE
    max_workers: int = 4
    compression: str = Compression.LZW.value

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range or a
                required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``GFC_MAX_WORKERS=abc``).
        """
        config = cls(
            data_folder=os.getenv("GFC_DATA_FOLDER", "."),
            dataset_version=os.getenv("GFC_DATASET_VERSION", DEFAULT_DATASET),
            mosaic_tolerance=float(
                os.getenv("GFC_MOSAIC_TOLERANCE", str(DEFAULT_MOSAIC_TOLERANCE))
            ),
            max_workers=int(os.getenv("GFC_MAX_WORKERS", "4")),
            compression=os.getenv("GFC_COMPRESSION", Compression.LZW.value),
        )
        _validate(config)
        return config

    @property
    def data_path(self) -> Path:
        """The data folder as a ``Path``."""
        return Path(self.data_folder)

    def default_options(self) -> ExtractOptions:
        """Build in-memory ``ExtractOptions`` from this configuration."""
        return ExtractOptions(
            compression=Compression.from_name(self.compression),
            tolerance=self.mosaic_tolerance,
        )


def _validate(config: PipelineConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.data_folder:
        raise ConfigValidationError(
            "GFC_DATA_FOLDER",
            config.data_folder,
            "must not be empty",
        )

    if not config.dataset_version:
        raise ConfigValidationError(
            "GFC_DATASET_VERSION",
            config.dataset_version,
            "must not be empty",
        )

    if not 0.0 < config.mosaic_tolerance <= MAX_TOLERANCE:
        raise ConfigValidationError(
            "GFC_MOSAIC_TOLERANCE",
            config.mosaic_tolerance,
            f"must be > 0 and <= {MAX_TOLERANCE} (fraction of a pixel)",
        )

    if config.max_workers < 1:
        raise ConfigValidationError(
            "GFC_MAX_WORKERS",
            config.max_workers,
            "must be >= 1",
        )

    try:
        Compression.from_name(config.compression)
    except ValidationError as exc:
        raise ConfigValidationError("GFC_COMPRESSION", config.compression, exc.message) from exc
