"""Ray data structure and grid coordinate types for the heightfield ray tracer.

This module provides the Ray dataclass and the helpers
used by the intersection code. All operations are designed to work within
Taichi kernels so that one query per pixel can run in parallel.

Points and vectors share the vec3 type. Grid coordinates use vec2 (fractional
row/column) and ivec2 (integer row/column).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.5, 5.0, 0.5)
    >>> direction = ti.math.vec3(0.0, -1.0, 0.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type aliases using Taichi's math module
vec3 = tm.vec3
vec2 = tm.vec2
ivec2 = tm.ivec2


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). It does not need
            to be normalized; ray parameters are measured in units of its
            length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector.

    Returns:
        A new Ray instance.
    """
    return Ray(origin=origin, direction=direction)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    A direction is degenerate exactly when this is zero.
    """
    return tm.dot(v, v)
