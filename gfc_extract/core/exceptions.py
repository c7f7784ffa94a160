"""Unified exception taxonomy for the extraction pipeline.

Every domain exception inherits from ``PipelineError`` and carries
structured context fields (stage, code, retryability) so callers can
present or log failures uniformly.

Taxonomy categories
-------------------
- ``ValidationError``   — bad caller input (AOI, variant, CRS), never retryable.
- ``TransientError``    — temporary failures, retryable.
- ``PermanentError``    — data problems on disk (missing or misaligned tiles).
- ``ContractError``     — a stage produced output that breaks the next
  stage's expectations (e.g. wrong band cardinality).

Data and configuration problems are never retried internally: each
pipeline call aborts on the first error and re-raises it unchanged.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage where the error occurred
            (e.g. ``"tile_grid"``, ``"mosaic_tiles"``).
        code: Machine-readable error code (e.g. ``"GRID_ALIGNMENT"``).
        retryable: Whether the caller may retry the operation unchanged.
        correlation_id: Request correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    """Input or domain-model validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(PipelineError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(PipelineError):
    """Unrecoverable data failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(PipelineError):
    """A stage output violates the next stage's expectations. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class EmptyResultError(PermanentError):
    """The AOI does not intersect the dataset coverage (or yields no pixels)."""

    default_stage = "tile_grid"
    default_code = "EMPTY_RESULT"


class MissingTileFileError(PermanentError):
    """An expected tile file is absent from the data folder.

    Attributes:
        path: The missing file path (as a string).
    """

    default_stage = "load_tiles"
    default_code = "MISSING_TILE_FILE"

    def __init__(self, path: object, message: str = "") -> None:
        self.path = str(path)
        super().__init__(message or f"Tile file not found: {self.path}")


class BandCountMismatchError(ContractError):
    """A raster has the wrong band cardinality for its product variant.

    Attributes:
        expected: Expected band count.
        actual: Observed band count.
    """

    default_stage = "raster"
    default_code = "BAND_COUNT_MISMATCH"

    def __init__(self, expected: int, actual: int, message: str = "") -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(message or f"Expected {expected} bands, got {actual}")


class GridAlignmentError(PermanentError):
    """Tile grids cannot be merged (misaligned beyond tolerance, CRS or size mismatch)."""

    default_stage = "mosaic_tiles"
    default_code = "GRID_ALIGNMENT"


class UnsupportedCRSError(ValidationError):
    """A reprojection target cannot be determined or is invalid."""

    default_stage = "reproject_mosaic"
    default_code = "UNSUPPORTED_CRS"


class UnsupportedVariantError(ValidationError):
    """The requested product variant is not one of change, first, last."""

    default_stage = "variant"
    default_code = "UNSUPPORTED_VARIANT"


class AOIError(ValidationError):
    """The area of interest is empty, not polygonal, or has an unusable CRS."""

    default_stage = "aoi"
    default_code = "INVALID_AOI"


class RasterWriteError(PermanentError):
    """The output raster could not be persisted."""

    default_stage = "write_raster"
    default_code = "RASTER_WRITE_FAILED"
