"""In-memory multi-band raster shared by every pipeline stage.

A ``RasterStack`` is one grid (origin, resolution, CRS, extent) holding
one or more named bands and a required no-data sentinel.  Stages never
mutate a stack; they derive a new one with ``replace``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from gfc_extract.core.constants import NODATA_VALUE
from gfc_extract.core.exceptions import BandCountMismatchError, ContractError

if TYPE_CHECKING:
    from affine import Affine


@dataclass(frozen=True, slots=True, eq=False)
class RasterStack:
    """A multi-band raster on a single north-up grid.

    Attributes:
        data: Array of shape ``(bands, rows, cols)``.
        transform: Affine pixel-to-CRS transform of the top-left corner.
        crs: CRS string (e.g. ``"EPSG:4326"``).
        band_names: One name per band, in band order.
        nodata: Sentinel marking cells without a valid measurement.
    """

    data: np.ndarray
    transform: Affine
    crs: str
    band_names: tuple[str, ...]
    nodata: float = NODATA_VALUE

    def __post_init__(self) -> None:
        if self.data.ndim != 3:
            msg = f"Raster data must be 3-D (bands, rows, cols), got {self.data.ndim}-D"
            raise ContractError(msg, stage="raster", code="RASTER_SHAPE")
        if not isinstance(self.band_names, tuple):
            object.__setattr__(self, "band_names", tuple(self.band_names))
        if len(self.band_names) != self.data.shape[0]:
            raise BandCountMismatchError(
                len(self.band_names),
                self.data.shape[0],
                f"Raster has {self.data.shape[0]} bands but "
                f"{len(self.band_names)} band names {list(self.band_names)}",
            )

    def replace(self, **changes: object) -> RasterStack:
        """Return a new stack with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    # -- Grid properties ---------------------------------------------------

    @property
    def count(self) -> int:
        return self.data.shape[0]

    @property
    def height(self) -> int:
        return self.data.shape[1]

    @property
    def width(self) -> int:
        return self.data.shape[2]

    @property
    def res(self) -> tuple[float, float]:
        """Pixel size ``(x, y)`` in CRS units, both positive."""
        return (abs(self.transform.a), abs(self.transform.e))

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """``(left, bottom, right, top)`` in the stack CRS."""
        left = self.transform.c
        top = self.transform.f
        right = left + self.width * self.transform.a
        bottom = top + self.height * self.transform.e
        return (left, bottom, right, top)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def valid_mask(self) -> np.ndarray:
        """Boolean array, ``True`` where a cell holds data."""
        if np.isnan(self.nodata):
            return ~np.isnan(self.data)
        return self.data != self.nodata

    def band(self, name: str) -> np.ndarray:
        """Return the 2-D array of a named band.

        Raises:
            KeyError: If no band has that name.
        """
        try:
            index = self.band_names.index(name)
        except ValueError:
            msg = f"No band named {name!r}; bands are {list(self.band_names)}"
            raise KeyError(msg) from None
        return self.data[index]

    def identical(self, other: RasterStack) -> bool:
        """Bit-for-bit equality of data, grid, CRS, names, and nodata."""
        return (
            self.crs == other.crs
            and self.transform == other.transform
            and self.band_names == other.band_names
            and self.data.dtype == other.data.dtype
            and np.array_equal(self.data, other.data)
            and (self.nodata == other.nodata or (np.isnan(self.nodata) and np.isnan(other.nodata)))
        )
