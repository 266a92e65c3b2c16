"""
Mesh access utilities.

A model is a trimesh.Scene. Every geometry in it that carries an (n, 3)
vertex buffer (Trimesh, PointCloud, Path3D) is treated as a mesh node.
"""

import logging
from typing import Any, Dict, Iterator, Optional, Tuple

import numpy as np
import trimesh

logger = logging.getLogger(__name__)


def as_scene(loaded) -> trimesh.Scene:
    """Wrap a bare geometry in a Scene, pass a Scene through."""
    if isinstance(loaded, trimesh.Scene):
        return loaded
    scene = trimesh.Scene()
    scene.add_geometry(loaded)
    return scene


def has_vertex_buffer(geometry) -> bool:
    vertices = getattr(geometry, "vertices", None)
    if vertices is None:
        return False
    vertices = np.asanyarray(vertices)
    return vertices.ndim == 2 and vertices.shape[1] == 3 and len(vertices) > 0


def iter_meshes(scene: trimesh.Scene) -> Iterator[Tuple[str, Any]]:
    """Yield (geometry name, geometry) for every geometry with a vertex buffer."""
    for name, geometry in scene.geometry.items():
        if has_vertex_buffer(geometry):
            yield name, geometry


def set_vertices(geometry, vertices: np.ndarray) -> None:
    """
    Replace a geometry's vertex buffer.

    Assigning through the trimesh property invalidates the geometry's cache,
    so bounds, bounding sphere and anything else derived are recomputed on
    next access.
    """
    geometry.vertices = np.array(vertices, dtype=np.float64, copy=True)


def vertex_bounds(buffers) -> Optional[np.ndarray]:
    """
    Axis-aligned bounds over a collection of (n, 3) arrays.

    Returns:
        (2, 3) array of [min, max], or None if there are no vertices
    """
    buffers = [np.asarray(b, dtype=np.float64) for b in buffers if len(b)]
    if not buffers:
        return None
    stacked = np.vstack(buffers)
    return np.array([stacked.min(axis=0), stacked.max(axis=0)])


def world_bounds(scene: trimesh.Scene) -> Optional[np.ndarray]:
    """
    World-space bounds of every vertex, node transforms applied.

    Unlike `scene.bounds` this includes vertices not referenced by faces and
    lets non-finite values through so callers can detect them.
    """
    buffers = []
    for node in scene.graph.nodes_geometry:
        transform, geometry_name = scene.graph[node]
        geometry = scene.geometry.get(geometry_name)
        if geometry is None or not has_vertex_buffer(geometry):
            continue
        buffers.append(trimesh.transformations.transform_points(
            np.asarray(geometry.vertices, dtype=np.float64), transform))
    return vertex_bounds(buffers)


def compute_model_stats(scene: trimesh.Scene) -> Dict[str, Any]:
    """
    Compute summary statistics for a model.

    Args:
        scene: Model scene

    Returns:
        Dictionary of model statistics
    """
    n_meshes = 0
    n_vertices = 0
    n_faces = 0
    for _, geometry in iter_meshes(scene):
        n_meshes += 1
        n_vertices += len(geometry.vertices)
        faces = getattr(geometry, "faces", None)
        if faces is not None:
            n_faces += len(faces)

    bounds = world_bounds(scene)
    stats = {
        "n_meshes": n_meshes,
        "n_vertices": n_vertices,
        "n_faces": n_faces,
        "bounds": None,
        "extents": None,
    }
    if bounds is not None:
        stats["bounds"] = {"min": bounds[0].tolist(), "max": bounds[1].tolist()}
        stats["extents"] = (bounds[1] - bounds[0]).tolist()
    return stats
