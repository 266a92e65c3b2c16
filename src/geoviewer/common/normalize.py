"""
Model normalization utilities.

CRITICAL: Normalization happens AFTER geo projection, NEVER before.

The model is centered on the origin and scaled so max(bbox dimension) equals
the target size (2.0 display units by default). Only the scene's base-frame
transforms change; vertex buffers are left alone, so normalization is
independent of projection and restoration.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
import trimesh

from .config import DEFAULT_TARGET_SIZE
from .errors import DegenerateBounds
from .mesh_ops import world_bounds

logger = logging.getLogger(__name__)


@dataclass
class NormalizationResult:
    """Result of model normalization."""
    scale_factor: float
    translation: np.ndarray
    bbox_before: Optional[Dict[str, Tuple[float, float]]]
    max_dim_before: float
    degenerate: bool = False


def get_bounds_dict(bounds: Optional[np.ndarray]) -> Optional[Dict[str, Tuple[float, float]]]:
    """Convert a (2, 3) [min, max] array to per-axis (min, max) pairs."""
    if bounds is None:
        return None
    return {
        axis: (float(bounds[0][i]), float(bounds[1][i]))
        for i, axis in enumerate("xyz")
    }


def get_max_dimension(bounds: Optional[np.ndarray]) -> float:
    """Largest extent of a (2, 3) box, nan if there is no box."""
    if bounds is None:
        return float("nan")
    return float(np.max(bounds[1] - bounds[0]))


def normalization_matrix(center: np.ndarray, scale: float) -> np.ndarray:
    """4x4 homogeneous transform: translate by -center, then scale uniformly."""
    matrix = np.eye(4) * scale
    matrix[3, 3] = 1.0
    matrix[:3, 3] = -np.asarray(center, dtype=np.float64) * scale
    return matrix


def undo_normalization(scene: trimesh.Scene, result: NormalizationResult) -> None:
    """Apply the inverse of a previous normalize_model transform."""
    matrix = normalization_matrix(-result.translation, result.scale_factor)
    scene.apply_transform(np.linalg.inv(matrix))


def normalize_model(
    scene: trimesh.Scene,
    target_size: float = DEFAULT_TARGET_SIZE
) -> NormalizationResult:
    """
    Center a model on the origin and scale it to a canonical size.

    A single point, a flat-zero box or corrupt (nan/inf) coordinates give a
    degenerate box: the scale falls back to 1 and a warning is logged. The
    transform applied is always finite.

    Args:
        scene: Model to normalize in place
        target_size: Target maximum dimension

    Returns:
        NormalizationResult with the scale and translation applied
    """
    bounds = world_bounds(scene)
    max_dim = get_max_dimension(bounds)

    if bounds is None:
        center = np.zeros(3)
    else:
        center = (bounds[0] + bounds[1]) / 2.0
        center = np.nan_to_num(center, nan=0.0, posinf=0.0, neginf=0.0)

    degenerate = not np.isfinite(max_dim) or max_dim <= 0
    if degenerate:
        logger.warning(
            f"Model bounding box is degenerate (max dimension {max_dim}), using scale 1",
            extra={"category": DegenerateBounds.__name__},
        )
        scale = 1.0
    else:
        scale = float(target_size) / max_dim

    scene.apply_transform(normalization_matrix(center, scale))

    logger.info(f"Normalized model: max dimension {max_dim:.4g}, scale={scale:.6g}")

    return NormalizationResult(
        scale_factor=scale,
        translation=-center,
        bbox_before=get_bounds_dict(bounds),
        max_dim_before=max_dim,
        degenerate=degenerate,
    )
