"""Axis-aligned bounding box ray test (slab method).

For every axis the ray's valid parameter range is intersected with the range
in which it lies between the two slab planes:

    t1 = (box_min[d] - origin[d]) / direction[d]
    t2 = (box_max[d] - origin[d]) / direction[d]
    t_low  = max(t_low,  min(t1, t2))
    t_high = min(t_high, max(t1, t2))

A ray parallel to a slab (direction[d] ~ 0) only passes when its origin
already lies within the slab. After all three axes the box is hit when
t_low <= t_high and t_high >= 0. The comparison is inclusive, so a ray
touching the box in a single point counts as a hit (t_low == t_high).

Heightfields are usually thin in Y compared to X and Z, so the Y slab is
evaluated first by slab_y_axis(), which rejects on its own before the
other axes are looked at.
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Direction components smaller than this are treated as parallel to the slab
EPSILON = 1e-8

# Stand-in for an unbounded ray parameter
T_INFINITY = 1e30


@ti.dataclass
class AabbHit:
    """Result of a ray-box test.

    Attributes:
        hit: 1 if the ray overlaps the box, 0 otherwise.
        t_low: Parameter where the ray enters the box (may be negative when
            the origin is inside). Only valid if hit == 1.
        t_high: Parameter where the ray leaves the box. Only valid if hit == 1.
    """

    hit: ti.i32
    t_low: ti.f32
    t_high: ti.f32


@ti.func
def slab_axis(
    origin: ti.f32,
    direction: ti.f32,
    box_min: ti.f32,
    box_max: ti.f32,
    t_low: ti.f32,
    t_high: ti.f32,
):
    """Clip the parameter range [t_low, t_high] against one slab.

    Args:
        origin: Ray origin component on this axis.
        direction: Ray direction component on this axis.
        box_min: Lower slab plane.
        box_max: Upper slab plane.
        t_low: Current entry parameter.
        t_high: Current exit parameter.

    Returns:
        Tuple (ok, t_low, t_high). ok is 0 when the ray is parallel to the
        slab and outside it; the range is then returned unchanged.
    """
    ok = 1
    new_low = t_low
    new_high = t_high

    if ti.abs(direction) < EPSILON:
        if origin < box_min or origin > box_max:
            ok = 0
    else:
        inv_direction = 1.0 / direction
        t1 = (box_min - origin) * inv_direction
        t2 = (box_max - origin) * inv_direction
        new_low = ti.max(t_low, ti.min(t1, t2))
        new_high = ti.min(t_high, ti.max(t1, t2))

    return ok, new_low, new_high


@ti.func
def slab_y_axis(
    origin: ti.f32,
    direction: ti.f32,
    box_min: ti.f32,
    box_max: ti.f32,
    t_low: ti.f32,
    t_high: ti.f32,
):
    """Clip against the Y slab and reject early when it alone misses.

    Same contract as slab_axis(), but ok is also 0 when the clipped range
    is empty or lies entirely behind the ray origin.
    """
    ok, new_low, new_high = slab_axis(origin, direction, box_min, box_max, t_low, t_high)
    if new_low > new_high or new_high < 0.0:
        ok = 0
    return ok, new_low, new_high


@ti.func
def hit_aabb(
    ray_origin: vec3,
    ray_direction: vec3,
    box_min: vec3,
    box_max: vec3,
) -> AabbHit:
    """Test a ray against an axis-aligned box.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        box_min: Minimum corner of the box.
        box_max: Maximum corner of the box.

    Returns:
        An AabbHit with the entry and exit parameters.
    """
    did_hit = 0
    hit_low = 0.0
    hit_high = 0.0

    ok_y, low_y, high_y = slab_y_axis(
        ray_origin.y, ray_direction.y, box_min.y, box_max.y, -T_INFINITY, T_INFINITY
    )
    if ok_y == 1:
        ok_x, low_x, high_x = slab_axis(
            ray_origin.x, ray_direction.x, box_min.x, box_max.x, low_y, high_y
        )
        if ok_x == 1:
            ok_z, low_z, high_z = slab_axis(
                ray_origin.z, ray_direction.z, box_min.z, box_max.z, low_x, high_x
            )
            if ok_z == 1 and low_z <= high_z and high_z >= 0.0:
                did_hit = 1
                hit_low = low_z
                hit_high = high_z

    return AabbHit(hit=did_hit, t_low=hit_low, t_high=hit_high)
