"""Product variants of the forest change dataset.

Each variant carries its band names and per-tile source image names as
data, so tile naming, loading, and scaling dispatch on one value instead
of repeating string switches.
"""

from __future__ import annotations

import enum

from gfc_extract.core.exceptions import UnsupportedVariantError

_CHANGE_LAYERS = ("treecover2000", "lossyear", "gain", "datamask")
_REFLECTANCE_BANDS = ("Band3", "Band4", "Band5", "Band7")


class ProductVariant(enum.Enum):
    """Layer stack extracted from the dataset.

    Values:
        CHANGE: Forest change layers (tree cover 2000, loss year, gain,
            data mask). Categorical, one file per layer.
        FIRST:  First-epoch top-of-atmosphere reflectance composite.
        LAST:   Last-epoch top-of-atmosphere reflectance composite.
    """

    CHANGE = "change"
    FIRST = "first"
    LAST = "last"

    @classmethod
    def from_name(cls, name: str | ProductVariant) -> ProductVariant:
        """Resolve a variant from its name.

        Raises:
            UnsupportedVariantError: If ``name`` is not change, first, or last.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            msg = f'stack must be equal to "change", "first", or "last", got {name!r}'
            raise UnsupportedVariantError(msg) from None

    @property
    def image_names(self) -> tuple[str, ...]:
        """Source image names, one file per name for every tile."""
        if self is ProductVariant.CHANGE:
            return _CHANGE_LAYERS
        return (self.value,)

    @property
    def band_names(self) -> tuple[str, ...]:
        """Names of the bands in the assembled raster."""
        if self is ProductVariant.CHANGE:
            return _CHANGE_LAYERS
        return _REFLECTANCE_BANDS

    @property
    def band_count(self) -> int:
        return len(self.band_names)

    @property
    def categorical(self) -> bool:
        """Whether values are class codes that must never be interpolated."""
        return self is ProductVariant.CHANGE

    @property
    def is_reflectance(self) -> bool:
        return self in (ProductVariant.FIRST, ProductVariant.LAST)
