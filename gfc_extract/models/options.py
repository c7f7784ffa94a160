"""Explicit options for mosaicking and persisting an extraction.

Replaces free-form writer keyword pass-through with an enumerated set of
recognised options.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

from gfc_extract.core.constants import DEFAULT_MOSAIC_TOLERANCE
from gfc_extract.core.exceptions import ValidationError

#: Largest meaningful misalignment; beyond half a pixel the nearest cell changes.
MAX_TOLERANCE = 0.5


class Compression(enum.Enum):
    """GeoTIFF compression codec for persisted output."""

    LZW = "lzw"
    DEFLATE = "deflate"
    NONE = "none"

    @classmethod
    def from_name(cls, name: str) -> Compression:
        """Look up a codec by case-insensitive name.

        Raises:
            ValidationError: If the name is not a known codec.
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(c.value for c in cls)
            msg = f"Unknown compression {name!r}; expected one of: {valid}"
            raise ValidationError(msg, stage="options", code="INVALID_OPTION") from None


@dataclass(frozen=True, slots=True)
class ExtractOptions:
    """Options for one extraction call.

    Attributes:
        output_path: Where to write the final GeoTIFF. ``None`` keeps the
            result in memory only.
        overwrite: Whether an existing ``output_path`` may be replaced.
        write_metadata: Also write a JSON metadata record beside
            ``output_path``.
        compression: GeoTIFF codec.
        tolerance: Maximum grid misalignment between merged tiles, as a
            fraction of one pixel.
    """

    output_path: Path | None = None
    overwrite: bool = False
    write_metadata: bool = False
    compression: Compression = Compression.LZW
    tolerance: float = DEFAULT_MOSAIC_TOLERANCE

    def __post_init__(self) -> None:
        if not 0.0 < self.tolerance <= MAX_TOLERANCE:
            msg = f"tolerance={self.tolerance!r} must be > 0 and <= {MAX_TOLERANCE} (pixels)"
            raise ValidationError(msg, stage="options", code="INVALID_OPTION")
        if self.output_path is not None and not isinstance(self.output_path, Path):
            object.__setattr__(self, "output_path", Path(self.output_path))
