"""Core rendering module.

This module contains the fundamental building blocks for ray casting:

Components:
    ray: Ray data structure and grid coordinate types
    renderer: Frame production, one primary ray per pixel against a height map

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .ray import (
    Ray,
    ivec2,
    length_squared,
    make_ray,
    ray_at,
    vec2,
    vec3,
)

# Note: renderer is NOT imported here; it pulls in the camera fields.
# Import directly from src.python.core.renderer when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec2",
    "vec3",
    "ivec2",
    "length_squared",
]
