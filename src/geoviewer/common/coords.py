"""
Geo reprojection of raw model coordinates.

Unit Flow (NON-NEGOTIABLE):
Raw vertex (x, y, z) → (lon, lat, height) per axis mapping → local ENU meters
→ written back as (east, up, north), i.e. y-up / z-north display convention.

Flat-Earth approximation only: a constant 111320 m per degree of latitude and
111320·cos(lat0) m per degree of longitude at the origin latitude. Good for
models spanning a few tens of kilometers.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
import trimesh

from .axes import AxisMapping
from .config import METERS_PER_DEGREE, sanitize_exaggeration
from .mesh_ops import iter_meshes, set_vertices, vertex_bounds
from .snapshot import VertexSnapshotStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoOrigin:
    """Geodetic midpoint of the model's bounding box."""
    lon0: float
    lat0: float
    height0: float

    def to_dict(self) -> Dict[str, float]:
        return {"lon0": self.lon0, "lat0": self.lat0, "height0": self.height0}


@dataclass(frozen=True)
class GeoBounds:
    """Geodetic extent of the model, for fitting a map viewport."""
    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float

    @property
    def center(self) -> Tuple[float, float]:
        """Return (lon, lat) of the center."""
        return (
            (self.min_lon + self.max_lon) / 2,
            (self.min_lat + self.max_lat) / 2
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "min_lon": self.min_lon,
            "max_lon": self.max_lon,
            "min_lat": self.min_lat,
            "max_lat": self.max_lat,
        }


def meters_per_degree_longitude(lat: float) -> float:
    """Length of one degree of longitude at latitude `lat` (degrees)."""
    return METERS_PER_DEGREE * np.cos(np.radians(lat))


def origin_from_bounds(bounds: np.ndarray, mapping: AxisMapping) -> GeoOrigin:
    """Midpoint of a (2, 3) [min, max] box along each mapped axis."""
    mid = (bounds[0] + bounds[1]) / 2.0
    return GeoOrigin(
        lon0=float(mid[mapping.lon]),
        lat0=float(mid[mapping.lat]),
        height0=float(mid[mapping.height]),
    )


def geo_bounds_from_bounds(bounds: np.ndarray, mapping: AxisMapping) -> GeoBounds:
    return GeoBounds(
        min_lon=float(bounds[0][mapping.lon]),
        max_lon=float(bounds[1][mapping.lon]),
        min_lat=float(bounds[0][mapping.lat]),
        max_lat=float(bounds[1][mapping.lat]),
    )


def to_enu(
    raw: np.ndarray,
    mapping: AxisMapping,
    origin: GeoOrigin,
    vertical_exaggeration: float = 1.0,
    flip_z_scale: bool = False,
    flip_vertical: bool = False
) -> np.ndarray:
    """
    Convert raw axis-tagged vertices to local ENU meters.

    Args:
        raw: Nx3 raw vertex positions
        mapping: Which raw axis holds lon, lat and height
        origin: Projection origin
        vertical_exaggeration: Multiplier on the up component
        flip_z_scale: Negate up
        flip_vertical: Negate up (again, if flip_z_scale is also set)

    Returns:
        Nx3 array of (east, up, north)
    """
    raw = np.asarray(raw, dtype=np.float64)
    lon = raw[:, mapping.lon]
    lat = raw[:, mapping.lat]
    height = raw[:, mapping.height]

    east = (lon - origin.lon0) * meters_per_degree_longitude(origin.lat0)
    north = (lat - origin.lat0) * METERS_PER_DEGREE
    up = (height - origin.height0) * vertical_exaggeration

    if flip_z_scale:
        up = -up
    if flip_vertical:
        up = -up

    return np.column_stack([east, up, north])


class GeoProjector:
    """
    Reversible geo projection of a model's vertex buffers.

    Every projection reads from the original snapshots, never from the live
    buffers, so any sequence of project/restore calls lands on the same
    vertices as a single projection of the untouched model.
    """

    def __init__(self, store: Optional[VertexSnapshotStore] = None):
        self.store = store if store is not None else VertexSnapshotStore()
        self.last_origin: Optional[GeoOrigin] = None

    def snapshot(self, scene: trimesh.Scene) -> int:
        return self.store.snapshot(scene)

    def _original(self, geometry) -> np.ndarray:
        original = self.store.get(geometry)
        if original is None:
            return np.asarray(geometry.vertices, dtype=np.float64)
        return original

    def original_bounds(self, scene: trimesh.Scene) -> Optional[np.ndarray]:
        """Bounds of the pre-projection vertices of every mesh."""
        return vertex_bounds(self._original(g) for _, g in iter_meshes(scene))

    def compute_origin(self, scene: trimesh.Scene, mapping: AxisMapping) -> GeoOrigin:
        """
        Projection origin: bbox midpoint along each mapped axis.

        Raises:
            ValueError: if the model has no vertices
        """
        bounds = self.original_bounds(scene)
        if bounds is None:
            raise ValueError("Model has no vertices to compute a geo origin from")
        return origin_from_bounds(bounds, mapping)

    def project(
        self,
        scene: trimesh.Scene,
        mapping: AxisMapping,
        vertical_exaggeration: float = 1.0,
        flip_z_scale: bool = False,
        flip_vertical: bool = False
    ) -> GeoBounds:
        """
        Rewrite every mesh in `scene` into local ENU meters.

        Args:
            scene: Model to project in place
            mapping: Raw axis for (lon, lat, height)
            vertical_exaggeration: Multiplier on up; non-positive or
                non-finite values fall back to the default
            flip_z_scale: Negate up
            flip_vertical: Negate up after flip_z_scale

        Returns:
            GeoBounds of the model along the mapped lon/lat axes
        """
        mapping = AxisMapping.parse(mapping)
        exaggeration = sanitize_exaggeration(vertical_exaggeration)

        self.snapshot(scene)
        bounds = self.original_bounds(scene)
        if bounds is None:
            raise ValueError("Model has no vertices to project")

        origin = origin_from_bounds(bounds, mapping)
        geo_bounds = geo_bounds_from_bounds(bounds, mapping)

        n_meshes = 0
        for _, geometry in iter_meshes(scene):
            enu = to_enu(
                self._original(geometry),
                mapping,
                origin,
                vertical_exaggeration=exaggeration,
                flip_z_scale=flip_z_scale,
                flip_vertical=flip_vertical,
            )
            set_vertices(geometry, enu)
            n_meshes += 1

        logger.info(f"Geo projection ({mapping.describe()}, exaggeration={exaggeration}) "
                    f"applied to {n_meshes} meshes; origin lon={origin.lon0:.6f} "
                    f"lat={origin.lat0:.6f} h={origin.height0:.2f}")
        self.last_origin = origin
        return geo_bounds

    def restore(self, scene: trimesh.Scene) -> int:
        """Put original vertices back. Snapshots are kept."""
        return self.store.restore(scene)
