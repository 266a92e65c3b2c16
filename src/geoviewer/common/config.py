"""
Configuration and constants for model preparation.

Transform order (NON-NEGOTIABLE):
- decode → snapshot → geo projection (optional) → normalize → hand off
- Normalized size: max(bbox dimension) = 2.0 display units
"""

import dataclasses
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .axes import AxisMapping

logger = logging.getLogger(__name__)

# Meters per degree of latitude, also the equatorial meters per degree of longitude
METERS_PER_DEGREE = 111320.0

DEFAULT_VERTICAL_EXAGGERATION = 1.0

DEFAULT_TARGET_SIZE = 2.0


def sanitize_exaggeration(value: Optional[float]) -> float:
    """Return `value` if it is a finite positive number, else the default."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        value = float("nan")
    if not math.isfinite(value) or value <= 0:
        logger.warning(f"Vertical exaggeration {value!r} is not a positive number, "
                       f"using {DEFAULT_VERTICAL_EXAGGERATION}")
        return DEFAULT_VERTICAL_EXAGGERATION
    return value


@dataclass(frozen=True)
class Config:
    """
    Viewer configuration.

    Geo mode reinterprets raw vertex coordinates as (lon, lat, height) per
    `axis_mapping` and converts them to local East-North-Up meters.
    """

    # Raw axis index for (lon, lat, height)
    axis_mapping: AxisMapping = field(default_factory=AxisMapping)

    # Multiplier on the "up" component after projection
    vertical_exaggeration: float = DEFAULT_VERTICAL_EXAGGERATION

    # Sign flips on "up"; both set means two negations
    flip_z_scale: bool = False
    flip_vertical: bool = False

    geo_mode_enabled: bool = False

    # Largest bbox dimension after normalization
    target_size: float = DEFAULT_TARGET_SIZE

    def __post_init__(self):
        # frozen, so go through object.__setattr__
        object.__setattr__(self, "axis_mapping", AxisMapping.parse(self.axis_mapping))
        object.__setattr__(self, "vertical_exaggeration",
                           sanitize_exaggeration(self.vertical_exaggeration))

    def replace(self, **changes) -> "Config":
        """
        Return a copy with `changes` applied.

        Raises:
            InvalidMapping: if `axis_mapping` is not a permutation of (0, 1, 2);
                nothing is applied in that case
        """
        return dataclasses.replace(self, **changes)

    @property
    def exaggeration(self) -> float:
        """Vertical exaggeration, already clamped to a usable value."""
        return self.vertical_exaggeration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "axis_mapping": list(self.axis_mapping.as_tuple()),
            "vertical_exaggeration": self.vertical_exaggeration,
            "flip_z_scale": self.flip_z_scale,
            "flip_vertical": self.flip_vertical,
            "geo_mode_enabled": self.geo_mode_enabled,
            "target_size": self.target_size,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        data = dict(data)
        if "axis_mapping" in data:
            data["axis_mapping"] = AxisMapping.parse(data["axis_mapping"])
        return cls(**data)

    @classmethod
    def from_json(cls, path: Path) -> "Config":
        """Load config from JSON file."""
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data)

    def save(self, path: Path) -> None:
        """Save config to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


@dataclass
class ViewMetadata:
    """
    Sidecar metadata for every exported model.

    Carries what a map overlay or a later session needs to relate the
    normalized display model back to geodetic space.
    """
    source: str
    geo_mode_enabled: bool
    axis_mapping: List[int]
    vertical_exaggeration: float
    scale_factor: float
    translation: List[float]
    n_meshes: int
    n_vertices: int
    n_faces: int
    geo_bounds: Optional[Dict[str, float]] = None
    geo_origin: Optional[Dict[str, float]] = None
    textures: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    def save(self, path: Path) -> None:
        """Save metadata to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViewMetadata":
        return cls(**data)


# Global default config
DEFAULT_CONFIG = Config()
