"""Geometry module for heightfield primitives and intersection algorithms.

Components:
    cell: Heightfield cell (four corner heights plus their maximum)
    triangle: Ray-triangle intersection for the two triangles of a cell
    aabb: Axis-aligned bounding box slab test

All intersection routines are implemented as Taichi functions (@ti.func)
so they can be called per pixel from parallel kernels. Results are returned
as small dataclasses carrying a hit flag:
    rec = hit_triangle(ray_origin, ray_direction, a, b, c, t_min, t_max)
    if rec.hit == 1: ...
"""

from .aabb import AabbHit, hit_aabb, slab_axis, slab_y_axis
from .cell import Cell, CellInfo, cell_vertices, cells_from_samples, make_cell
from .triangle import TriangleHit, hit_cell_triangles, hit_triangle, make_triangle_miss

__all__ = [
    "AabbHit",
    "hit_aabb",
    "slab_axis",
    "slab_y_axis",
    "Cell",
    "CellInfo",
    "cell_vertices",
    "cells_from_samples",
    "make_cell",
    "TriangleHit",
    "hit_triangle",
    "hit_cell_triangles",
    "make_triangle_miss",
]
