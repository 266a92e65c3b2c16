"""
Original vertex positions, kept aside so geo projection can be undone.

The store is a side-table keyed by geometry identity. It holds a reference to
each geometry it has seen so that identity stays valid for as long as the
entry exists; the owning load session clears it on release.
"""

import logging
from typing import Dict, Optional, Tuple

import numpy as np
import trimesh

from .mesh_ops import iter_meshes, set_vertices

logger = logging.getLogger(__name__)


class VertexSnapshotStore:
    """
    Per-mesh immutable copies of vertex buffers.

    A mesh is captured at most once. Captured arrays are read-only, so the
    stored copy is the sole source of truth for "restore to original".
    """

    def __init__(self):
        self._entries: Dict[int, Tuple[object, np.ndarray]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, geometry) -> bool:
        return id(geometry) in self._entries

    def get(self, geometry) -> Optional[np.ndarray]:
        entry = self._entries.get(id(geometry))
        return None if entry is None else entry[1]

    def capture(self, geometry) -> bool:
        """
        Copy `geometry`'s vertex buffer unless already captured.

        Returns:
            True if a new snapshot was taken
        """
        if geometry in self:
            return False
        original = np.array(geometry.vertices, dtype=np.float64, copy=True)
        original.flags.writeable = False
        self._entries[id(geometry)] = (geometry, original)
        return True

    def snapshot(self, scene: trimesh.Scene) -> int:
        """
        Capture every mesh in `scene` that has no snapshot yet.

        Returns:
            Number of meshes newly captured
        """
        captured = sum(1 for _, geometry in iter_meshes(scene) if self.capture(geometry))
        if captured:
            logger.debug(f"Snapshot taken for {captured} meshes ({len(self)} total)")
        return captured

    def restore(self, scene: trimesh.Scene) -> int:
        """
        Copy snapshots back into the live buffers of `scene`.

        Snapshots stay in place, so the model can be restored again.

        Returns:
            Number of meshes restored
        """
        restored = 0
        for _, geometry in iter_meshes(scene):
            original = self.get(geometry)
            if original is None:
                continue
            set_vertices(geometry, original)
            restored += 1
        if restored:
            logger.debug(f"Restored original vertices for {restored} meshes")
        return restored

    def clear(self) -> None:
        self._entries.clear()
