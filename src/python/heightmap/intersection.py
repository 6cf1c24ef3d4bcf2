"""Intersection results for height map queries.

Kernel code works with HeightMapHit, which carries a hit flag like the other
hit records. Host code gets an Intersection or None: a miss has no data at
all, so there is nothing to read by accident.
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class HeightMapHit:
    """Record of a ray-height map intersection.

    Attributes:
        hit: 1 if the ray hit the surface, 0 otherwise.
        t: Ray parameter of the nearest hit, in units of the direction's
            length. Only valid if hit == 1.
        point: World-space hit point. Only valid if hit == 1.
        normal: Unit surface normal facing the ray origin.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def make_heightmap_miss() -> HeightMapHit:
    """Create a HeightMapHit indicating no intersection."""
    return HeightMapHit(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
    )


@dataclass(frozen=True)
class Intersection:
    """A ray-surface hit as seen from Python.

    Attributes:
        t: Ray parameter of the hit (t >= 0).
        point: World-space hit point.
        normal: Unit surface normal facing the ray origin.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
