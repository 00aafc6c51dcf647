"""Unit tests for scene-level intersection.

Tests cover:
- Empty scene misses
- Closest hit among several spheres, regardless of insertion order
- Material id propagation
- Capacity and argument validation of add_sphere
"""

import math

import pytest
import taichi as ti


def _intersect(origin, direction, t_min=0.001, t_max=1e10):
    from pathtrace.core.ray import Ray, vec3
    from pathtrace.scene.intersection import intersect_scene

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    normal = ti.field(dtype=ti.math.vec3, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, t_min: ti.f32, t_max: ti.f32):
        record = intersect_scene(Ray(origin=o, direction=d), t_min, t_max)
        hit[None] = record.hit
        t_val[None] = record.t
        normal[None] = record.normal
        material_id[None] = record.material_id

    test_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    n = normal[None]
    return hit[None], t_val[None], (n[0], n[1], n[2]), material_id[None]


class TestSceneStorage:
    """Tests for adding and clearing spheres."""

    def test_add_sphere_returns_index(self):
        """Test sphere indices are assigned in order."""
        from pathtrace.scene.intersection import add_sphere, get_sphere_count

        assert add_sphere((0, 0, 0), 1.0, 0) == 0
        assert add_sphere((1, 0, 0), 1.0, 0) == 1
        assert get_sphere_count() == 2

    def test_clear_scene(self):
        """Test clear_scene empties the scene."""
        from pathtrace.scene.intersection import add_sphere, clear_scene, get_sphere_count

        add_sphere((0, 0, 0), 1.0, 0)
        clear_scene()
        assert get_sphere_count() == 0

    @pytest.mark.parametrize("radius", [0.0, math.inf, math.nan])
    def test_invalid_radius(self, radius):
        """Test zero and non-finite radii are rejected."""
        from pathtrace.scene.intersection import add_sphere

        with pytest.raises(ValueError, match="radius"):
            add_sphere((0, 0, 0), radius, 0)

    def test_negative_radius_accepted(self):
        """Test negative radii are allowed (hollow shells)."""
        from pathtrace.scene.intersection import add_sphere, get_sphere_count

        add_sphere((0, 0, 0), -0.45, 0)
        assert get_sphere_count() == 1

    def test_capacity(self):
        """Test exceeding MAX_SPHERES raises RuntimeError."""
        from pathtrace.scene.intersection import MAX_SPHERES, add_sphere

        for i in range(MAX_SPHERES):
            add_sphere((float(i), 0.0, 0.0), 0.1, 0)
        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            add_sphere((0.0, 0.0, 0.0), 0.1, 0)


class TestIntersectScene:
    """Tests for intersect_scene."""

    def test_empty_scene_misses(self):
        """Test an empty scene never reports a hit."""
        hit, _, _, material_id = _intersect((0, 0, 0), (0, 0, -1))

        assert hit == 0
        assert material_id == -1

    def test_single_sphere(self):
        """Test a single sphere is found with its material id."""
        from pathtrace.scene.intersection import add_sphere

        add_sphere((0, 0, -3), 1.0, 7)
        hit, t, n, material_id = _intersect((0, 0, 0), (0, 0, -1))

        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert abs(n[2] - 1.0) < 1e-5
        assert material_id == 7

    @pytest.mark.parametrize("near_first", [True, False])
    def test_nearest_sphere_wins(self, near_first):
        """Test the nearer sphere occludes the farther one in either order."""
        from pathtrace.scene.intersection import add_sphere

        if near_first:
            add_sphere((0, 0, -3), 1.0, 1)
            add_sphere((0, 0, -10), 1.0, 2)
        else:
            add_sphere((0, 0, -10), 1.0, 2)
            add_sphere((0, 0, -3), 1.0, 1)

        hit, t, _, material_id = _intersect((0, 0, 0), (0, 0, -1))

        assert hit == 1
        assert abs(t - 2.0) < 1e-5
        assert material_id == 1

    def test_ignores_spheres_off_axis(self):
        """Test spheres not on the ray path are not hit."""
        from pathtrace.scene.intersection import add_sphere

        add_sphere((5, 0, -3), 1.0, 1)
        add_sphere((0, 0, -8), 1.0, 2)
        hit, t, _, material_id = _intersect((0, 0, 0), (0, 0, -1))

        assert hit == 1
        assert abs(t - 7.0) < 1e-5
        assert material_id == 2

    def test_t_min_skips_surface_at_origin(self):
        """Test a ray starting on a surface does not re-hit it at t ~ 0."""
        from pathtrace.scene.intersection import add_sphere

        # Ray starts on the sphere's surface pointing outward
        add_sphere((0, 0, 0), 1.0, 3)
        hit, _, _, _ = _intersect((0, 0, 1), (0, 0, 1))

        assert hit == 0

    def test_nested_shell(self):
        """Test a ray from outside a hollow shell hits the outer surface first."""
        from pathtrace.scene.intersection import add_sphere

        add_sphere((0, 0, -1), 0.5, 4)
        add_sphere((0, 0, -1), -0.45, 4)
        hit, t, n, _ = _intersect((0, 0, 0), (0, 0, -1))

        assert hit == 1
        assert abs(t - 0.5) < 1e-5
        assert abs(n[2] - 1.0) < 1e-5

        # From inside the shell wall, the inner surface is next, normal toward the center
        hit, t, n, _ = _intersect((0, 0, -0.52), (0, 0, -1))
        assert hit == 1
        assert abs(t - 0.03) < 1e-4
        assert abs(n[2] - (-1.0)) < 1e-5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
