"""Ray-triangle intersection for heightfield cells.

Uses the Möller-Trumbore formulation: solve

    origin + t * direction = (1 - u - v) * A + u * B + v * C

for (t, u, v) with Cramer's rule. A hit requires t_min <= t <= t_max,
u >= 0, v >= 0 and u + v <= 1. The barycentric bounds are widened by
BARYCENTRIC_EPSILON so rays through a shared edge or vertex are not lost
between two neighbouring triangles.

The returned normal is normalize(cross(B - A, C - A)), flipped so that it
faces the ray origin.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.geometry.triangle import hit_triangle, vec3
    >>> # Use hit_triangle within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Determinant below this magnitude means the ray is parallel to the triangle
DETERMINANT_EPSILON = 1e-12

# Tolerance on the barycentric bounds
BARYCENTRIC_EPSILON = 1e-5


@ti.dataclass
class TriangleHit:
    """Result of a ray-triangle test.

    Attributes:
        hit: 1 if the ray hit the triangle, 0 otherwise.
        t: Ray parameter of the hit. Only valid if hit == 1.
        normal: Unit normal facing the ray origin. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    normal: vec3


@ti.func
def make_triangle_miss() -> TriangleHit:
    """Create a TriangleHit indicating no intersection."""
    return TriangleHit(hit=0, t=0.0, normal=vec3(0.0, 0.0, 0.0))


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    a: vec3,
    b: vec3,
    c: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> TriangleHit:
    """Test for ray-triangle intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        a: First vertex.
        b: Second vertex.
        c: Third vertex.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A TriangleHit. Check the hit field to see whether an intersection
        was found.
    """
    edge1 = b - a
    edge2 = c - a

    pvec = tm.cross(ray_direction, edge2)
    det = tm.dot(edge1, pvec)

    did_hit = 0
    hit_t = 0.0
    hit_normal = vec3(0.0, 0.0, 0.0)

    if ti.abs(det) > DETERMINANT_EPSILON:
        inv_det = 1.0 / det
        tvec = ray_origin - a
        u = tm.dot(tvec, pvec) * inv_det

        qvec = tm.cross(tvec, edge1)
        v = tm.dot(ray_direction, qvec) * inv_det
        t = tm.dot(edge2, qvec) * inv_det

        inside = (
            u >= -BARYCENTRIC_EPSILON
            and v >= -BARYCENTRIC_EPSILON
            and u + v <= 1.0 + BARYCENTRIC_EPSILON
        )
        if inside and t >= t_min and t <= t_max:
            did_hit = 1
            hit_t = t

            normal = tm.normalize(tm.cross(edge1, edge2))
            if tm.dot(normal, ray_direction) > 0.0:
                normal = -normal
            hit_normal = normal

    return TriangleHit(hit=did_hit, t=hit_t, normal=hit_normal)


@ti.func
def hit_cell_triangles(
    ray_origin: vec3,
    ray_direction: vec3,
    top_left: vec3,
    top_right: vec3,
    bottom_left: vec3,
    bottom_right: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> TriangleHit:
    """Test a ray against both triangles of a cell and keep the nearer hit.

    The triangles are (top_left, top_right, bottom_left) and
    (top_right, bottom_right, bottom_left).

    Returns:
        The TriangleHit with the smaller t, or a miss.
    """
    first = hit_triangle(ray_origin, ray_direction, top_left, top_right, bottom_left, t_min, t_max)

    # Second triangle only needs to beat the first hit
    second_t_max = t_max
    if first.hit == 1:
        second_t_max = first.t

    second = hit_triangle(
        ray_origin, ray_direction, top_right, bottom_right, bottom_left, t_min, second_t_max
    )

    result = first
    if second.hit == 1 and (first.hit == 0 or second.t < first.t):
        result = second
    return result
