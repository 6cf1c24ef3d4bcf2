"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function, including unnormalized directions
- length_squared, the degenerate-direction check
"""

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from src.python.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            origin = vec3(1.0, 2.0, 3.0)
            direction = vec3(0.0, 0.0, -1.0)
            ray = Ray(origin=origin, direction=direction)
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_positive_t(self):
        """Test ray_at computes correct point along ray."""
        from src.python.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            origin = vec3(0.0, 0.0, 0.0)
            direction = vec3(1.0, 0.0, 0.0)
            ray = Ray(origin=origin, direction=direction)
            result[None] = ray_at(ray, 5.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 5.0) < 1e-6
        assert abs(r[1] - 0.0) < 1e-6
        assert abs(r[2] - 0.0) < 1e-6

    def test_ray_at_negative_t(self):
        """Test ray_at handles negative t (behind origin)."""
        from src.python.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            origin = vec3(0.0, 0.0, 0.0)
            direction = vec3(0.0, 1.0, 0.0)
            ray = Ray(origin=origin, direction=direction)
            result[None] = ray_at(ray, -3.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.0) < 1e-6
        assert abs(r[1] - (-3.0)) < 1e-6
        assert abs(r[2] - 0.0) < 1e-6

    def test_make_ray(self):
        """Test make_ray convenience function."""
        from src.python.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 1.0, 1.0), vec3(0.0, 0.0, 1.0))
            result[None] = ray_at(ray, 2.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6


class TestLengthSquared:
    """Tests for the squared-length helper."""

    def test_length_squared(self):
        """Test squared length avoids sqrt."""
        from src.python.core.ray import length_squared, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            result[None] = length_squared(v)

        test_kernel()
        assert abs(result[None] - 25.0) < 1e-6


class TestUnnormalizedDirections:
    """Ray parameters are measured in units of the direction's length."""

    def test_ray_at_scaled_direction(self):
        """Doubling the direction halves the parameter for the same point."""
        from src.python.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 5.0, 0.0), vec3(0.0, -2.0, 0.0))
            result[None] = ray_at(ray, 2.5)

        test_kernel()
        assert tuple(result[None]) == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)

    def test_length_squared_detects_zero_direction(self):
        """A zero direction has zero squared length."""
        from src.python.core.ray import length_squared, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = length_squared(vec3(0.0, 0.0, 0.0))

        test_kernel()
        assert result[None] == 0.0
