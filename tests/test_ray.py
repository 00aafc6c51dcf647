"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, unit_vector, length, reflect, refract)
- Schlick reflectance
- Random sampling functions for Monte Carlo
"""

import math

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from pathtrace.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_scales_unnormalized_direction(self):
        """Test ray_at uses the raw direction, not a normalized one."""
        from pathtrace.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 1.0, 1.0), vec3(0.0, 0.0, 2.0))
            result[None] = ray_at(ray, 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2] - 4.0) < 1e-6

    def test_ray_at_negative_t(self):
        """Test ray_at handles negative t (behind origin)."""
        from pathtrace.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 1.0, 0.0))
            result[None] = ray_at(ray, -3.0)

        test_kernel()
        r = result[None]
        assert abs(r[1] - (-3.0)) < 1e-6


class TestVectorUtilities:
    """Tests for vector utility functions."""

    def test_length(self):
        """Test vector length computation."""
        from pathtrace.core.ray import length, length_squared, vec3

        result = ti.field(dtype=ti.f32, shape=())
        result_sq = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            result[None] = length(v)
            result_sq[None] = length_squared(v)

        test_kernel()
        assert abs(result[None] - 5.0) < 1e-6
        assert abs(result_sq[None] - 25.0) < 1e-6

    def test_unit_vector(self):
        """Test unit_vector produces unit length in the same direction."""
        from pathtrace.core.ray import unit_vector, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = unit_vector(vec3(0.0, 3.0, 4.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] - 0.6) < 1e-6
        assert abs(r[2] - 0.8) < 1e-6

    def test_unit_vector_of_zero_is_zero(self):
        """Test unit_vector of the zero vector does not produce NaN."""
        from pathtrace.core.ray import unit_vector, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = unit_vector(vec3(0.0, 0.0, 0.0))

        test_kernel()
        r = result[None]
        for c in range(3):
            assert r[c] == 0.0

    def test_dot_and_cross(self):
        """Test dot and cross products."""
        from pathtrace.core.ray import cross, dot, vec3

        dot_result = ti.field(dtype=ti.f32, shape=())
        cross_result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            dot_result[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, 5.0, 6.0))
            cross_result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert abs(dot_result[None] - 32.0) < 1e-6
        c = cross_result[None]
        assert abs(c[0]) < 1e-6
        assert abs(c[1]) < 1e-6
        assert abs(c[2] - 1.0) < 1e-6

    def test_component_wise_product(self):
        """Test vec3 multiplication is component-wise (color attenuation)."""
        from pathtrace.core.ray import vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = vec3(0.5, 0.2, 1.0) * vec3(0.4, 0.5, 0.3)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.2) < 1e-6
        assert abs(r[1] - 0.1) < 1e-6
        assert abs(r[2] - 0.3) < 1e-6

    def test_near_zero(self):
        """Test near_zero detection."""
        from pathtrace.core.ray import near_zero, vec3

        result_zero = ti.field(dtype=ti.i32, shape=())
        result_nonzero = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            result_zero[None] = near_zero(vec3(1e-9, 1e-9, 1e-9))
            result_nonzero[None] = near_zero(vec3(0.1, 0.0, 0.0))

        test_kernel()
        assert result_zero[None] == 1
        assert result_nonzero[None] == 0


class TestReflection:
    """Tests for reflect()."""

    def test_reflect_45_degrees(self):
        """Test reflection about a normal."""
        from pathtrace.core.ray import reflect, unit_vector, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = unit_vector(vec3(1.0, -1.0, 0.0))
            result[None] = reflect(incident, vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        expected = 1.0 / math.sqrt(2.0)
        assert abs(r[0] - expected) < 1e-5
        assert abs(r[1] - expected) < 1e-5
        assert abs(r[2]) < 1e-6

    @pytest.mark.parametrize(
        "v,n",
        [
            ((0.3, -0.8, 0.2), (0.0, 1.0, 0.0)),
            ((2.0, 1.0, -3.0), (0.0, 0.0, 1.0)),
            ((-1.0, -1.0, -1.0), (0.57735027, 0.57735027, 0.57735027)),
        ],
    )
    def test_reflect_flips_normal_component(self, v, n):
        """Test dot(reflect(v, n), n) == -dot(v, n) and length is preserved."""
        from pathtrace.core.ray import dot, length, reflect, vec3

        dot_before = ti.field(dtype=ti.f32, shape=())
        dot_after = ti.field(dtype=ti.f32, shape=())
        len_before = ti.field(dtype=ti.f32, shape=())
        len_after = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(v: vec3, n: vec3):
            r = reflect(v, n)
            dot_before[None] = dot(v, n)
            dot_after[None] = dot(r, n)
            len_before[None] = length(v)
            len_after[None] = length(r)

        test_kernel(vec3(*v), vec3(*n))
        assert abs(dot_after[None] + dot_before[None]) < 1e-5
        assert abs(len_after[None] - len_before[None]) < 1e-5


class TestRefraction:
    """Tests for refract() and schlick()."""

    def test_refract_normal_incidence(self):
        """Test a ray along the normal continues straight through."""
        from pathtrace.core.ray import refract, vec3

        ok = ti.field(dtype=ti.i32, shape=())
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            flag, r = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)
            ok[None] = flag
            result[None] = r

        test_kernel()
        assert ok[None] == 1
        r = result[None]
        assert abs(r[0]) < 1e-5
        assert abs(r[1] - (-1.0)) < 1e-5
        assert abs(r[2]) < 1e-5

    def test_refract_ratio_one_is_identity(self):
        """Test an index ratio of 1 leaves the direction unchanged."""
        from pathtrace.core.ray import refract, unit_vector, vec3

        ok = ti.field(dtype=ti.i32, shape=())
        result = ti.field(dtype=ti.math.vec3, shape=())
        incident = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            uv = unit_vector(vec3(0.6, -0.7, 0.2))
            flag, r = refract(uv, vec3(0.0, 1.0, 0.0), 1.0)
            ok[None] = flag
            result[None] = r
            incident[None] = uv

        test_kernel()
        assert ok[None] == 1
        r = result[None]
        uv = incident[None]
        for c in range(3):
            assert abs(r[c] - uv[c]) < 1e-5

    def test_refract_snells_law(self):
        """Test sin(theta_t) == ni_over_nt * sin(theta_i)."""
        from pathtrace.core.ray import refract, unit_vector, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            # 30 degrees from the normal
            uv = unit_vector(vec3(0.5, -0.8660254, 0.0))
            _, r = refract(uv, vec3(0.0, 1.0, 0.0), 1.0 / 1.5)
            result[None] = r

        test_kernel()
        r = result[None]
        sin_t = abs(r[0]) / math.sqrt(r[0] ** 2 + r[1] ** 2 + r[2] ** 2)
        assert abs(sin_t - 0.5 / 1.5) < 1e-4

    def test_refract_total_internal_reflection(self):
        """Test refract reports failure past the critical angle."""
        from pathtrace.core.ray import refract, unit_vector, vec3

        ok = ti.field(dtype=ti.i32, shape=())
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            uv = unit_vector(vec3(0.9, -0.1, 0.0))
            flag, r = refract(uv, vec3(0.0, 1.0, 0.0), 1.5)
            ok[None] = flag
            result[None] = r

        test_kernel()
        assert ok[None] == 0
        r = result[None]
        for c in range(3):
            assert r[c] == 0.0

    def test_schlick(self):
        """Test Schlick's approximation at normal and grazing incidence."""
        from pathtrace.core.ray import schlick

        normal = ti.field(dtype=ti.f32, shape=())
        grazing = ti.field(dtype=ti.f32, shape=())
        unit_index = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            normal[None] = schlick(1.0, 1.5)
            grazing[None] = schlick(0.0, 1.5)
            unit_index[None] = schlick(1.0, 1.0)

        test_kernel()
        # r0 = ((1 - 1.5) / (1 + 1.5))^2 = 0.04
        assert abs(normal[None] - 0.04) < 1e-6
        assert abs(grazing[None] - 1.0) < 1e-6
        assert unit_index[None] == 0.0


class TestRandomSampling:
    """Tests for random sampling functions."""

    def test_random_in_unit_sphere_bounds(self):
        """Test random_in_unit_sphere returns points inside the unit ball."""
        from pathtrace.core.ray import length_squared, random_in_unit_sphere
        from pathtrace.core.sampler import seed_stream

        max_len_sq = ti.field(dtype=ti.f32, shape=())
        mean = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            seed_stream(0, 11, 0)
            max_len_sq[None] = 0.0
            mean[None] = ti.math.vec3(0.0, 0.0, 0.0)
            ti.loop_config(serialize=True)
            for k in range(2000):
                p = random_in_unit_sphere(0)
                max_len_sq[None] = ti.max(max_len_sq[None], length_squared(p))
                mean[None] += p / 2000.0

        test_kernel()
        assert max_len_sq[None] < 1.0
        # Uniform in the ball: mean near the origin
        m = mean[None]
        for c in range(3):
            assert abs(m[c]) < 0.05

    def test_random_in_unit_disk_bounds(self):
        """Test random_in_unit_disk returns points in the z = 0 unit disk."""
        from pathtrace.core.ray import random_in_unit_disk
        from pathtrace.core.sampler import seed_stream

        max_len_sq = ti.field(dtype=ti.f32, shape=())
        max_abs_z = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            seed_stream(0, 5, 0)
            max_len_sq[None] = 0.0
            max_abs_z[None] = 0.0
            ti.loop_config(serialize=True)
            for k in range(2000):
                p = random_in_unit_disk(0)
                max_len_sq[None] = ti.max(max_len_sq[None], p.x * p.x + p.y * p.y)
                max_abs_z[None] = ti.max(max_abs_z[None], ti.abs(p.z))

        test_kernel()
        assert max_len_sq[None] < 1.0
        assert max_abs_z[None] == 0.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
