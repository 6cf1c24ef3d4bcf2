"""Unit tests for the triangle module.

Tests cover:
- Hits and misses against a single triangle
- Normal orientation toward the ray origin
- Parallel rays and the t range
- Edge tolerance and the two-triangle cell test
"""

import pytest
import taichi as ti


def _run_triangle(origin, direction, a, b, c, t_min=0.0, t_max=1e30):
    """Run hit_triangle in a kernel and return (hit, t, normal)."""
    from src.python.geometry.triangle import hit_triangle, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel():
        rec = hit_triangle(
            vec3(origin[0], origin[1], origin[2]),
            vec3(direction[0], direction[1], direction[2]),
            vec3(a[0], a[1], a[2]),
            vec3(b[0], b[1], b[2]),
            vec3(c[0], c[1], c[2]),
            t_min,
            t_max,
        )
        hit[None] = rec.hit
        t[None] = rec.t
        normal[None] = rec.normal

    test_kernel()
    n = normal[None]
    return hit[None], t[None], (n[0], n[1], n[2])


# Triangle in the y = 0 plane covering x, z in [0, 1] below x + z = 1
A = (0.0, 0.0, 0.0)
B = (1.0, 0.0, 0.0)
C = (0.0, 0.0, 1.0)


class TestHitTriangle:
    """Tests for the single-triangle test."""

    def test_hit_from_above(self):
        hit, t, normal = _run_triangle((0.25, 2.0, 0.25), (0.0, -1.0, 0.0), A, B, C)

        assert hit == 1
        assert t == pytest.approx(2.0)
        assert normal == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)

    def test_normal_faces_origin_from_below(self):
        """The normal is flipped when the ray comes from the other side."""
        hit, t, normal = _run_triangle((0.25, -3.0, 0.25), (0.0, 1.0, 0.0), A, B, C)

        assert hit == 1
        assert t == pytest.approx(3.0)
        assert normal == pytest.approx((0.0, -1.0, 0.0), abs=1e-6)

    def test_miss_outside(self):
        """A ray past the hypotenuse misses."""
        hit, _, _ = _run_triangle((0.8, 2.0, 0.8), (0.0, -1.0, 0.0), A, B, C)

        assert hit == 0

    def test_parallel_ray_misses(self):
        hit, _, _ = _run_triangle((-1.0, 0.5, 0.25), (1.0, 0.0, 0.0), A, B, C)

        assert hit == 0

    def test_behind_origin_misses(self):
        """Hits at negative t are rejected."""
        hit, _, _ = _run_triangle((0.25, 2.0, 0.25), (0.0, 1.0, 0.0), A, B, C)

        assert hit == 0

    def test_t_max_limits_hit(self):
        hit, _, _ = _run_triangle((0.25, 2.0, 0.25), (0.0, -1.0, 0.0), A, B, C, t_max=1.5)

        assert hit == 0

    def test_hit_on_vertex(self):
        """A ray through a vertex still hits thanks to the edge tolerance."""
        hit, t, _ = _run_triangle((1.0, 1.0, 0.0), (0.0, -1.0, 0.0), A, B, C)

        assert hit == 1
        assert t == pytest.approx(1.0)

    def test_unnormalized_direction(self):
        """t is measured in units of the direction's length."""
        hit, t, _ = _run_triangle((0.25, 2.0, 0.25), (0.0, -4.0, 0.0), A, B, C)

        assert hit == 1
        assert t == pytest.approx(0.5)


class TestHitCellTriangles:
    """Tests for the two-triangle cell test."""

    def _run_cell(self, origin, direction, heights):
        from src.python.geometry.triangle import hit_cell_triangles, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t = ti.field(dtype=ti.f32, shape=())
        tl_h, tr_h, bl_h, br_h = heights

        @ti.kernel
        def test_kernel():
            rec = hit_cell_triangles(
                vec3(origin[0], origin[1], origin[2]),
                vec3(direction[0], direction[1], direction[2]),
                vec3(0.0, tl_h, 0.0),
                vec3(1.0, tr_h, 0.0),
                vec3(0.0, bl_h, 1.0),
                vec3(1.0, br_h, 1.0),
                0.0,
                1e30,
            )
            hit[None] = rec.hit
            t[None] = rec.t

        test_kernel()
        return hit[None], t[None]

    def test_first_triangle(self):
        """Points with x + z < 1 hit the (TL, TR, BL) triangle."""
        hit, t = self._run_cell((0.2, 5.0, 0.2), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0, 1.0))

        assert hit == 1
        assert t == pytest.approx(5.0)

    def test_second_triangle(self):
        """Points with x + z > 1 hit the (TR, BR, BL) triangle."""
        hit, t = self._run_cell((0.75, 5.0, 0.75), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0, 1.0))

        assert hit == 1
        # Plane through TR (1,0,0), BR (1,1,1), BL (0,0,1): y = x + z - 1
        assert t == pytest.approx(5.0 - 0.5, abs=1e-5)

    def test_nearest_of_both(self):
        """A horizontal ray through a folded cell gets the nearer triangle."""
        # Ridge along the diagonal: TR and BL high, TL and BR low
        hit, t = self._run_cell((-1.0, 0.5, 0.5), (1.0, 0.0, 0.0), (0.0, 1.0, 1.0, 0.0))

        assert hit == 1
        # First triangle y = x + z at z = 0.5 gives y = 0.5 at x = 0
        assert t == pytest.approx(1.0, abs=1e-5)
