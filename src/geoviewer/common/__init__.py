"""
Core transforms shared by the viewer session and the CLI.

Transform order (NON-NEGOTIABLE):
- decode → snapshot → geo projection (optional) → normalize → hand off
- Normalized size: max(bbox dimension) = 2.0 display units
"""

from .axes import AxisMapping
from .config import Config, ViewMetadata
from .coords import GeoProjector, GeoOrigin, GeoBounds, to_enu
from .errors import (
    GeoViewerError, InvalidMapping, UnsupportedFormat, DecodeFailure,
    DegenerateBounds, UnresolvedTexture,
)
from .io import load_model, save_model
from .mesh_ops import compute_model_stats, iter_meshes, world_bounds
from .normalize import normalize_model, undo_normalization, NormalizationResult
from .snapshot import VertexSnapshotStore
from .textures import (
    TextureHandle, TextureIndex, TextureResolver, PLACEHOLDER,
    build_index, collect_files, resolve,
)

__all__ = [
    'AxisMapping',
    'Config', 'ViewMetadata',
    'GeoProjector', 'GeoOrigin', 'GeoBounds', 'to_enu',
    'GeoViewerError', 'InvalidMapping', 'UnsupportedFormat', 'DecodeFailure',
    'DegenerateBounds', 'UnresolvedTexture',
    'load_model', 'save_model',
    'compute_model_stats', 'iter_meshes', 'world_bounds',
    'normalize_model', 'undo_normalization', 'NormalizationResult',
    'VertexSnapshotStore',
    'TextureHandle', 'TextureIndex', 'TextureResolver', 'PLACEHOLDER',
    'build_index', 'collect_files', 'resolve',
]
