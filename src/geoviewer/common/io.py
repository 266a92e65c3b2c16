"""
Model I/O.

Decoding is delegated to trimesh; this module only checks the format up
front, injects the texture resolver and turns decoder failures into
DecodeFailure. Prepared models are saved as GLB with a metadata sidecar.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import trimesh
from trimesh.resolvers import Resolver

from .config import ViewMetadata
from .errors import DecodeFailure, UnsupportedFormat
from .mesh_ops import as_scene, iter_meshes

logger = logging.getLogger(__name__)


def file_type_of(path: Union[str, Path]) -> str:
    """Lowercased extension without the dot, e.g. 'glb'."""
    return Path(path).suffix.lower().lstrip(".")


def is_supported(path: Union[str, Path]) -> bool:
    return file_type_of(path) in trimesh.available_formats()


def load_model(
    path: Union[str, Path],
    resolver: Optional[Resolver] = None
) -> trimesh.Scene:
    """
    Decode a model file into a scene.

    Args:
        path: Model file
        resolver: Resolution strategy for files the model references
            (textures, material libraries, buffers)

    Returns:
        Decoded scene with at least one vertex-carrying geometry

    Raises:
        UnsupportedFormat: the extension is not one trimesh can decode
        DecodeFailure: the file is missing, corrupt or holds no geometry
    """
    path = Path(path)
    file_type = file_type_of(path)
    if not is_supported(path):
        raise UnsupportedFormat(f"Unsupported model format {file_type!r}: {path.name}")
    if not path.is_file():
        raise DecodeFailure(f"Model file not found: {path}")

    try:
        loaded = trimesh.load(str(path), file_type=file_type, resolver=resolver, force="scene")
    except Exception as e:
        raise DecodeFailure(f"Failed to decode {path.name}: {e}") from e

    scene = as_scene(loaded)
    n_meshes = sum(1 for _ in iter_meshes(scene))
    if n_meshes == 0:
        raise DecodeFailure(f"No geometry found in {path.name}")

    logger.info(f"Loaded model: {path} ({n_meshes} meshes)")
    return scene


def save_model(
    scene: trimesh.Scene,
    path: Union[str, Path],
    metadata: ViewMetadata
) -> Path:
    """
    Save a prepared model to GLB with metadata sidecar.

    Args:
        scene: Prepared scene (normalization lives in its node transforms)
        path: Output path (should end in .glb)
        metadata: ViewMetadata object (will be saved as .json sidecar)

    Returns:
        Path of the written model
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    scene.export(str(path), file_type=file_type_of(path) or "glb")
    logger.info(f"Saved model: {path} ({metadata.n_vertices} verts, {metadata.n_faces} faces)")

    meta_path = path.with_suffix('.json')
    metadata.save(meta_path)
    logger.info(f"Saved metadata: {meta_path}")

    return path
