"""Data model for an Area of Interest (AOI).

An AOI is an immutable polygon or multi-polygon with an associated CRS.
It is never mutated; ``to_crs`` returns a new AOI expressed in another
coordinate reference system.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from gfc_extract.core.constants import DATASET_CRS
from gfc_extract.core.exceptions import AOIError

if TYPE_CHECKING:
    from shapely.geometry import MultiPolygon, Polygon

logger = logging.getLogger("gfc_extract.models.aoi")

_POLYGONAL_TYPES = ("Polygon", "MultiPolygon")


@dataclass(frozen=True, slots=True)
class AreaOfInterest:
    """A polygonal area of interest.

    Invalid geometries are repaired with ``make_valid`` on construction;
    empty, zero-area, or non-polygonal geometries are rejected.

    Attributes:
        geometry: Shapely ``Polygon`` or ``MultiPolygon``.
        crs: Any CRS string accepted by pyproj (e.g. ``"EPSG:4326"``).
        name: Optional label used in log messages.
    """

    geometry: Polygon | MultiPolygon
    crs: str = DATASET_CRS
    name: str = ""

    def __post_init__(self) -> None:
        from pyproj import CRS
        from pyproj.exceptions import CRSError

        label = self.name or "aoi"
        geom_type = getattr(self.geometry, "geom_type", type(self.geometry).__name__)
        if geom_type not in _POLYGONAL_TYPES:
            msg = f"AOI '{label}' must be a Polygon or MultiPolygon, got {geom_type}"
            raise AOIError(msg)
        if self.geometry.is_empty:
            msg = f"AOI '{label}' geometry is empty"
            raise AOIError(msg)

        if not self.geometry.is_valid:
            logger.warning("Invalid geometry in AOI '%s', attempting make_valid()", label)
            object.__setattr__(self, "geometry", _repair(self.geometry, label))

        if self.geometry.area == 0:
            msg = f"Zero-area polygon in AOI '{label}'"
            raise AOIError(msg)

        try:
            CRS.from_user_input(self.crs)
        except CRSError as exc:
            msg = f"AOI '{label}' has an unusable CRS {self.crs!r}: {exc}"
            raise AOIError(msg) from exc

    # -- Constructors ------------------------------------------------------

    @classmethod
    def from_bounds(
        cls,
        min_x: float,
        min_y: float,
        max_x: float,
        max_y: float,
        *,
        crs: str = DATASET_CRS,
        name: str = "",
    ) -> AreaOfInterest:
        """Build a rectangular AOI from its bounds."""
        from shapely.geometry import box

        return cls(box(min_x, min_y, max_x, max_y), crs=crs, name=name)

    @classmethod
    def from_file(cls, path: str | Path, *, layer: str | int | None = None) -> AreaOfInterest:
        """Read an AOI from a vector file (GeoJSON, Shapefile, GeoPackage, KML...).

        Every polygonal feature of the layer is unioned into one geometry.
        Files without a CRS are assumed to be WGS 84.

        Raises:
            AOIError: If the file cannot be opened or holds no polygons.
        """
        import fiona
        from shapely.geometry import shape
        from shapely.ops import unary_union

        path = Path(path)
        polygons = []
        try:
            with fiona.open(str(path), layer=layer) as collection:
                crs = collection.crs_wkt or DATASET_CRS
                for feature in collection:
                    if feature.geometry is None:
                        continue
                    geom = shape(feature.geometry)
                    if geom.geom_type in _POLYGONAL_TYPES:
                        polygons.append(geom)
        except (OSError, fiona.errors.FionaError) as exc:
            msg = f"Cannot read AOI from {path}: {exc}"
            raise AOIError(msg) from exc

        if not polygons:
            msg = f"No polygon features found in {path}"
            raise AOIError(msg)

        logger.info("AOI read | file=%s | polygons=%d", path.name, len(polygons))
        return cls(unary_union(polygons), crs=crs, name=path.stem)

    # -- Geometry ----------------------------------------------------------

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """``(min_x, min_y, max_x, max_y)`` in the AOI's own CRS."""
        return tuple(self.geometry.bounds)  # type: ignore[return-value]

    @property
    def envelope(self) -> Polygon:
        """Axis-aligned bounding polygon in the AOI's own CRS."""
        return self.geometry.envelope

    def same_crs(self, crs: str) -> bool:
        """Whether ``crs`` denotes the same reference system as this AOI."""
        from pyproj import CRS

        return CRS.from_user_input(self.crs) == CRS.from_user_input(crs)

    def to_crs(self, crs: str) -> AreaOfInterest:
        """Return this AOI re-expressed in ``crs``.

        Raises:
            AOIError: If the target CRS is unusable.
        """
        from pyproj import Transformer
        from pyproj.exceptions import CRSError
        from shapely.ops import transform

        try:
            if self.same_crs(crs):
                return self
            transformer = Transformer.from_crs(self.crs, crs, always_xy=True)
        except CRSError as exc:
            msg = f"Cannot transform AOI '{self.name or 'aoi'}' to {crs!r}: {exc}"
            raise AOIError(msg) from exc

        return AreaOfInterest(
            transform(transformer.transform, self.geometry),
            crs=crs,
            name=self.name,
        )


def _repair(geometry: Polygon | MultiPolygon, label: str) -> Polygon | MultiPolygon:
    """Repair an invalid polygonal geometry, keeping only its polygonal parts."""
    from shapely.ops import unary_union
    from shapely.validation import make_valid

    repaired = make_valid(geometry)
    if repaired.geom_type == "GeometryCollection":
        repaired = unary_union(
            [part for part in repaired.geoms if part.geom_type in _POLYGONAL_TYPES]
        )
    if repaired.is_empty or repaired.geom_type not in _POLYGONAL_TYPES:
        msg = f"AOI '{label}' geometry could not be repaired into a polygon"
        raise AOIError(msg)
    logger.info("Geometry repaired for AOI '%s'", label)
    return repaired
