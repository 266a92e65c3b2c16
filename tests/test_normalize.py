"""
Tests for model normalization.

Tests cover:
- Centering and uniform scaling to the target size
- Degenerate boxes (single point, non-finite coordinates)
- Vertex buffers untouched by normalization
- Model statistics
"""

import numpy as np
import pytest
import trimesh
from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from geoviewer.common.mesh_ops import compute_model_stats, world_bounds
from geoviewer.common.normalize import normalization_matrix, normalize_model, undo_normalization


# ============== Fixtures ==============

@pytest.fixture
def offset_box_scene():
    """A 10 x 4 x 2 box far from the origin."""
    box = trimesh.creation.box(extents=[10.0, 4.0, 2.0])
    box.apply_translation([500.0, -20.0, 3.0])
    scene = trimesh.Scene()
    scene.add_geometry(box, geom_name="box")
    return scene


def point_scene(points) -> trimesh.Scene:
    scene = trimesh.Scene()
    scene.add_geometry(trimesh.PointCloud(np.asarray(points, dtype=np.float64)), geom_name="points")
    return scene


# ============== Normalization Tests ==============

class TestNormalizeModel:
    """Test center + uniform scale."""

    def test_fits_target_size(self, offset_box_scene):
        """Largest dimension becomes the target size, centered at origin."""
        result = normalize_model(offset_box_scene, target_size=2.0)

        assert result.scale_factor == pytest.approx(0.2)
        assert result.degenerate is False

        bounds = world_bounds(offset_box_scene)
        np.testing.assert_allclose((bounds[0] + bounds[1]) / 2, [0.0, 0.0, 0.0], atol=1e-9)
        np.testing.assert_allclose(bounds[1] - bounds[0], [2.0, 0.8, 0.4], atol=1e-9)

    def test_translation_reported(self, offset_box_scene):
        result = normalize_model(offset_box_scene)
        np.testing.assert_allclose(result.translation, [-500.0, 20.0, -3.0])
        assert result.max_dim_before == pytest.approx(10.0)
        assert result.bbox_before["x"] == pytest.approx((495.0, 505.0))

    def test_vertices_untouched(self, offset_box_scene):
        """Normalization only changes node transforms."""
        before = np.array(offset_box_scene.geometry["box"].vertices)
        normalize_model(offset_box_scene)
        np.testing.assert_array_equal(offset_box_scene.geometry["box"].vertices, before)

    def test_renormalize_is_stable(self, offset_box_scene):
        """A second pass on a normalized model keeps it canonical."""
        normalize_model(offset_box_scene)
        result = normalize_model(offset_box_scene)

        assert result.scale_factor == pytest.approx(1.0)
        bounds = world_bounds(offset_box_scene)
        assert np.max(bounds[1] - bounds[0]) == pytest.approx(2.0)

    def test_undo_restores_frame(self, offset_box_scene):
        """Undo then normalize again reports the same scale as the first pass."""
        before = world_bounds(offset_box_scene)
        first = normalize_model(offset_box_scene)

        undo_normalization(offset_box_scene, first)
        np.testing.assert_allclose(world_bounds(offset_box_scene), before, atol=1e-9)

        second = normalize_model(offset_box_scene)
        assert second.scale_factor == pytest.approx(first.scale_factor)
        np.testing.assert_allclose(second.translation, first.translation)

    def test_multiple_meshes(self):
        """The box spans every mesh in the model."""
        scene = trimesh.Scene()
        scene.add_geometry(trimesh.creation.box(extents=[1, 1, 1]), geom_name="a")
        far = trimesh.creation.box(extents=[1, 1, 1])
        far.apply_translation([9.0, 0.0, 0.0])
        scene.add_geometry(far, geom_name="b")

        result = normalize_model(scene, target_size=2.0)

        assert result.scale_factor == pytest.approx(0.2)


# ============== Degenerate Bounds Tests ==============

class TestDegenerateBounds:
    """Scale is always finite and positive."""

    def test_single_point(self):
        scene = point_scene([[3.0, 4.0, 5.0]])
        result = normalize_model(scene)

        assert result.degenerate is True
        assert result.scale_factor == 1.0
        bounds = world_bounds(scene)
        np.testing.assert_allclose(bounds[0], [0.0, 0.0, 0.0])

    def test_identical_vertices(self):
        scene = point_scene([[1.0, 1.0, 1.0]] * 4)
        result = normalize_model(scene)
        assert result.scale_factor == 1.0

    @pytest.mark.parametrize("bad", [np.nan, np.inf, -np.inf])
    def test_non_finite_coordinate(self, bad):
        scene = point_scene([[0.0, 0.0, 0.0], [1.0, bad, 2.0]])
        result = normalize_model(scene)

        assert np.isfinite(result.scale_factor)
        assert result.scale_factor > 0
        assert np.all(np.isfinite(result.translation))
        for node in scene.graph.nodes_geometry:
            assert np.all(np.isfinite(scene.graph[node][0]))

    def test_degenerate_logs_warning(self, caplog):
        scene = point_scene([[3.0, 4.0, 5.0]])
        with caplog.at_level("WARNING"):
            normalize_model(scene)
        assert any("degenerate" in r.getMessage() for r in caplog.records)


# ============== Helper Tests ==============

class TestHelpers:

    def test_normalization_matrix(self):
        matrix = normalization_matrix(np.array([1.0, 2.0, 3.0]), 2.0)
        point = trimesh.transformations.transform_points([[1.0, 2.0, 4.0]], matrix)
        np.testing.assert_allclose(point, [[0.0, 0.0, 2.0]])

    def test_model_stats(self, offset_box_scene):
        stats = compute_model_stats(offset_box_scene)

        assert stats["n_meshes"] == 1
        assert stats["n_vertices"] == 8
        assert stats["n_faces"] == 12
        assert stats["extents"] == pytest.approx([10.0, 4.0, 2.0])

    def test_empty_scene_stats(self):
        stats = compute_model_stats(trimesh.Scene())
        assert stats["n_meshes"] == 0
        assert stats["bounds"] is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
