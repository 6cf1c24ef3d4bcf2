"""Height map storage and ray-height map intersection.

A HeightMap owns a grid of cells built from an (H, W) sample grid
((H - 1) x (W - 1) cells), the world placement of that grid and its
axis-aligned bounding box. Grid columns run along world X, grid rows along
world Z, and a sample value s is placed at world height position.y +
height * s:

    grid_col = (x - position.x) * width_ratio     width_ratio = cols / width
    grid_row = (z - position.z) * depth_ratio     depth_ratio = rows / depth

Ray queries run in three stages:

1. Bounding box rejection (slab test, see geometry.aabb).
2. Grid traversal. Starting at the box entry point, the ray's projection on
   the XZ plane is walked row by row. Within one row the ray crosses a
   contiguous run of cells [x_from .. x_to]; the run is described by the
   ray height at entry (init_y) and the height change per grid column
   (slope_y). A run whose lowest ray height lies above the row maximum is
   skipped as a whole; otherwise every cell whose maximum lies below the
   ray over that cell's span is culled.
3. Exact tests on the two triangles of each surviving cell.

Rows are visited in increasing t and cells within a run in increasing t, and
every triangle lies inside its cell's column, so the first exact hit found
is the nearest one.

The cell grid, row maxima and extents never change after construction.
position (and with it the bounding box) can be changed with set_position(),
but not while a kernel using this height map is running.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.python.heightmap.heightmap import HeightMap
    >>> hm = HeightMap.from_array(np.zeros((2, 2)), width=1.0, height=1.0, depth=1.0)
    >>> hit = hm.find_intersection((0.5, 5.0, 0.5), (0.0, -1.0, 0.0))
    >>> hit.t, hit.normal
    (5.0, (0.0, 1.0, 0.0))
"""

import logging
import math
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.python.core.ray import Ray, ivec2, length_squared, make_ray, ray_at, vec2
from src.python.geometry.aabb import AabbHit, hit_aabb
from src.python.geometry.cell import Cell, CellInfo, cell_vertices, cells_from_samples
from src.python.geometry.triangle import (
    TriangleHit,
    hit_cell_triangles,
    make_triangle_miss,
)
from src.python.heightmap.intersection import (
    HeightMapHit,
    Intersection,
    make_heightmap_miss,
)
from src.python.heightmap.source import ArrayHeightSource, HeightSampleSource, read_samples

_LOGGER: logging.Logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Slack added to maximum heights before culling a run or a cell
CULL_EPSILON = 1e-4

# A run spanning less than this in grid X is treated as constant height
X_SPAN_EPSILON = 1e-6

# Upper bound for triangle hits, the traversal already limits t to the box
T_INFINITY = 1e30

Vec3Like = Sequence[float]


@ti.data_oriented
class HeightMap:
    """A heightfield surface that can be intersected with rays.

    Args:
        source: Height sample source with at least 2x2 samples.
        position: World-space position of the grid's (row 0, col 0) corner
            at zero elevation.
        width: World extent along X covered by all columns.
        height: Scale from sample value to world Y.
        depth: World extent along Z covered by all rows.
        material: Opaque material handle, returned unchanged by material.

    Raises:
        ValueError: If an extent is not positive or the sample grid is
            smaller than 2x2.
    """

    def __init__(
        self,
        source: HeightSampleSource,
        position: Vec3Like = (0.0, 0.0, 0.0),
        width: float = 1.0,
        height: float = 1.0,
        depth: float = 1.0,
        material: object = None,
    ) -> None:
        for name, value in (("width", width), ("height", height), ("depth", depth)):
            if not value > 0.0:
                raise ValueError(f"Height map {name} must be positive, got {value}")

        samples = read_samples(source)
        corners = cells_from_samples(samples)

        self._rows = int(samples.shape[0]) - 1
        self._cols = int(samples.shape[1]) - 1
        self._width = float(width)
        self._height = float(height)
        self._depth = float(depth)
        self._width_ratio = self._cols / self._width
        self._depth_ratio = self._rows / self._depth
        self._cell_size_x = self._width / self._cols
        self._cell_size_z = self._depth / self._rows
        self._min_sample = float(samples.min())
        self._max_sample = float(samples.max())
        self._material = material
        self._corners = corners

        # Flat cell grid addressed by row * cols + col
        self.cells = Cell.field(shape=self._rows * self._cols)
        self.cells.from_numpy(corners)

        row_max = corners["max_height"].reshape(self._rows, self._cols).max(axis=1)
        self.row_max_heights = ti.field(dtype=ti.f32, shape=self._rows)
        self.row_max_heights.from_numpy(np.ascontiguousarray(row_max, dtype=np.float32))

        # Placement lives in fields so set_position() needs no recompilation
        self._position = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._aabb_min = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._aabb_max = ti.Vector.field(3, dtype=ti.f32, shape=())

        # Single-query results, read back by the Python-side wrappers
        self._result_hit = ti.field(dtype=ti.i32, shape=())
        self._result_t = ti.field(dtype=ti.f32, shape=())
        self._result_point = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._result_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._result_t_low = ti.field(dtype=ti.f32, shape=())
        self._result_t_high = ti.field(dtype=ti.f32, shape=())

        self.set_position(position)

        _LOGGER.debug(
            "Built %dx%d cell height map (width=%g, height=%g, depth=%g), aabb %s",
            self._rows,
            self._cols,
            self._width,
            self._height,
            self._depth,
            self.aabb,
        )

    @classmethod
    def from_array(
        cls,
        samples: npt.ArrayLike,
        position: Vec3Like = (0.0, 0.0, 0.0),
        width: float = 1.0,
        height: float = 1.0,
        depth: float = 1.0,
        material: object = None,
    ) -> "HeightMap":
        """Build a height map directly from a 2D array of samples."""
        return cls(
            ArrayHeightSource(samples),
            position=position,
            width=width,
            height=height,
            depth=depth,
            material=material,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def map_height(self) -> int:
        """Number of cell rows."""
        return self._rows

    @property
    def map_width(self) -> int:
        """Number of cell columns."""
        return self._cols

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def depth(self) -> float:
        return self._depth

    @property
    def width_ratio(self) -> float:
        """Grid columns per world unit along X."""
        return self._width_ratio

    @property
    def depth_ratio(self) -> float:
        """Grid rows per world unit along Z."""
        return self._depth_ratio

    @property
    def material(self) -> object:
        """The material handle given at construction."""
        return self._material

    @property
    def position(self) -> tuple[float, float, float]:
        """World-space position of the grid origin."""
        p = self._position[None]
        return (float(p[0]), float(p[1]), float(p[2]))

    @property
    def aabb(self) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
        """The bounding box as (aabb_min, aabb_max)."""
        lo = self._aabb_min[None]
        hi = self._aabb_max[None]
        return (
            (float(lo[0]), float(lo[1]), float(lo[2])),
            (float(hi[0]), float(hi[1]), float(hi[2])),
        )

    def set_position(self, position: Vec3Like) -> None:
        """Move the height map and recompute its bounding box.

        Must not be called while a kernel using this height map is running.

        Args:
            position: New world-space position of the grid origin.

        Raises:
            ValueError: If position does not have three finite components.
        """
        px, py, pz = (float(c) for c in position)
        if not all(math.isfinite(c) for c in (px, py, pz)):
            raise ValueError(f"Height map position must be finite, got {position}")

        self._position[None] = [px, py, pz]
        self._aabb_min[None] = [px, py + self._height * self._min_sample, pz]
        self._aabb_max[None] = [
            px + self._width,
            py + self._height * self._max_sample,
            pz + self._depth,
        ]

    # =========================================================================
    # Coordinate Queries (Python-side)
    # =========================================================================

    def get_base_coordinates(self, point: Vec3Like) -> tuple[float, float]:
        """Map a world point to fractional grid coordinates.

        Returns:
            (row, col) as floats. Y is ignored.
        """
        px, _, pz = self.position
        return ((float(point[2]) - pz) * self._depth_ratio, (float(point[0]) - px) * self._width_ratio)

    def get_int_base_coordinates(self, point: Vec3Like) -> tuple[int, int]:
        """Map a world point to the integer (row, col) of the cell below it."""
        row, col = self.get_base_coordinates(point)
        return (math.floor(row), math.floor(col))

    def get_cell(self, row: int, col: int) -> CellInfo:
        """Get the cell at a grid index.

        Raises:
            IndexError: If (row, col) is outside the grid.
        """
        if not (0 <= row < self._rows and 0 <= col < self._cols):
            raise IndexError(
                f"Cell ({row}, {col}) is outside the {self._rows}x{self._cols} grid"
            )
        idx = row * self._cols + col
        return CellInfo(
            top_left=float(self._corners["top_left"][idx]),
            top_right=float(self._corners["top_right"][idx]),
            bottom_left=float(self._corners["bottom_left"][idx]),
            bottom_right=float(self._corners["bottom_right"][idx]),
        )

    def get_cell_on_position(self, point: Vec3Like) -> CellInfo:
        """Get the cell below a world point.

        Raises:
            IndexError: If the point lies outside the grid's XZ footprint.
        """
        row, col = self.get_int_base_coordinates(point)
        return self.get_cell(row, col)

    def cell_center(self, row: int, col: int) -> tuple[float, float, float]:
        """World point above the center of a cell, at its mean corner height."""
        cell = self.get_cell(row, col)
        px, py, pz = self.position
        return (
            px + (col + 0.5) * self._cell_size_x,
            py + self._height * sum(cell.corners) / 4.0,
            pz + (row + 0.5) * self._cell_size_z,
        )

    def height_at(self, x: float, z: float) -> float | None:
        """Surface height at a world (x, z) location.

        Interpolates over the triangle of the cell below (x, z). Useful for
        placing objects on the terrain without a ray query.

        Returns:
            World Y of the surface, or None outside the grid's footprint.
        """
        px, py, pz = self.position
        grid_row = (z - pz) * self._depth_ratio
        grid_col = (x - px) * self._width_ratio
        if not (0.0 <= grid_row <= self._rows and 0.0 <= grid_col <= self._cols):
            return None

        row = min(math.floor(grid_row), self._rows - 1)
        col = min(math.floor(grid_col), self._cols - 1)
        fz = grid_row - row
        fx = grid_col - col
        cell = self.get_cell(row, col)

        if fx + fz <= 1.0:
            value = (
                cell.top_left
                + fx * (cell.top_right - cell.top_left)
                + fz * (cell.bottom_left - cell.top_left)
            )
        else:
            value = (
                cell.bottom_right
                + (1.0 - fx) * (cell.bottom_left - cell.bottom_right)
                + (1.0 - fz) * (cell.top_right - cell.bottom_right)
            )
        return py + self._height * value

    # =========================================================================
    # Ray Queries (Python-side)
    # =========================================================================

    def has_intersection_with_bounding_box(
        self, origin: Vec3Like, direction: Vec3Like
    ) -> tuple[bool, float, float]:
        """Slab test against the bounding box.

        Returns:
            (hit, t_low, t_high). The parameters are 0.0 on a miss.
        """
        o = [float(c) for c in origin]
        d = [float(c) for c in direction]
        if not all(math.isfinite(c) for c in (*o, *d)):
            return (False, 0.0, 0.0)

        self._bounding_box_kernel(o[0], o[1], o[2], d[0], d[1], d[2])
        if self._result_hit[None] == 0:
            return (False, 0.0, 0.0)
        return (True, float(self._result_t_low[None]), float(self._result_t_high[None]))

    def find_intersection(self, origin: Vec3Like, direction: Vec3Like) -> Intersection | None:
        """Find the nearest intersection of a ray with the surface.

        The direction does not need to be normalized; t is measured in units
        of its length. Degenerate rays (zero-length direction, NaN or
        infinite components) never hit.

        Args:
            origin: Ray origin (x, y, z).
            direction: Ray direction (x, y, z).

        Returns:
            The nearest Intersection, or None if the ray misses.
        """
        o = [float(c) for c in origin]
        d = [float(c) for c in direction]
        if not all(math.isfinite(c) for c in (*o, *d)):
            return None

        self._query_kernel(o[0], o[1], o[2], d[0], d[1], d[2])
        if self._result_hit[None] == 0:
            return None

        point = self._result_point[None]
        normal = self._result_normal[None]
        return Intersection(
            t=float(self._result_t[None]),
            point=(float(point[0]), float(point[1]), float(point[2])),
            normal=(float(normal[0]), float(normal[1]), float(normal[2])),
        )

    def find_intersections(
        self,
        origins: npt.ArrayLike,
        directions: npt.ArrayLike,
    ) -> dict[str, npt.NDArray]:
        """Intersect a batch of rays in parallel.

        Args:
            origins: Array of shape (N, 3).
            directions: Array of shape (N, 3).

        Returns:
            Dictionary with "hit" (bool, N), "t" (float32, N),
            "point" (float32, N x 3) and "normal" (float32, N x 3).
            Entries for missed rays are zero.

        Raises:
            ValueError: If the arrays are not both of shape (N, 3).
        """
        origin_array = np.ascontiguousarray(origins, dtype=np.float32)
        direction_array = np.ascontiguousarray(directions, dtype=np.float32)
        if (
            origin_array.ndim != 2
            or origin_array.shape[1] != 3
            or origin_array.shape != direction_array.shape
        ):
            raise ValueError(
                f"origins and directions must both have shape (N, 3), got "
                f"{origin_array.shape} and {direction_array.shape}"
            )

        count = origin_array.shape[0]
        hits = np.zeros(count, dtype=np.int32)
        ts = np.zeros(count, dtype=np.float32)
        points = np.zeros((count, 3), dtype=np.float32)
        normals = np.zeros((count, 3), dtype=np.float32)

        if count > 0:
            self._batch_kernel(origin_array, direction_array, hits, ts, points, normals)

        finite = np.isfinite(origin_array).all(axis=1) & np.isfinite(direction_array).all(axis=1)
        hit_mask = (hits == 1) & finite
        ts[~hit_mask] = 0.0
        points[~hit_mask] = 0.0
        normals[~hit_mask] = 0.0

        return {"hit": hit_mask, "t": ts, "point": points, "normal": normals}

    def to_string(self) -> str:
        """Readable dump of every cell and the extents."""
        lines = ["heightMap("]
        for row in range(self._rows):
            entries = []
            for col in range(self._cols):
                cell = self.get_cell(row, col)
                entries.append(
                    "{%.2f,%.2f,%.2f,%.2f --> %.2f}"
                    % (*cell.corners, cell.max_height)
                )
            lines.append("  " + " ".join(entries))
        lines.append(
            f") with parameters (width, height, depth) set to "
            f"({self._width:g}, {self._height:g}, {self._depth:g})"
        )
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()

    # =========================================================================
    # Kernels backing the Python-side queries
    # =========================================================================

    @ti.kernel
    def _query_kernel(
        self, ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32
    ):
        rec = self.intersect(make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz)))
        self._result_hit[None] = rec.hit
        self._result_t[None] = rec.t
        self._result_point[None] = rec.point
        self._result_normal[None] = rec.normal

    @ti.kernel
    def _bounding_box_kernel(
        self, ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32
    ):
        box = self.hit_bounding_box(make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz)))
        self._result_hit[None] = box.hit
        self._result_t_low[None] = box.t_low
        self._result_t_high[None] = box.t_high

    @ti.kernel
    def _batch_kernel(
        self,
        origins: ti.types.ndarray(dtype=ti.f32, ndim=2),
        directions: ti.types.ndarray(dtype=ti.f32, ndim=2),
        hits: ti.types.ndarray(dtype=ti.i32, ndim=1),
        ts: ti.types.ndarray(dtype=ti.f32, ndim=1),
        points: ti.types.ndarray(dtype=ti.f32, ndim=2),
        normals: ti.types.ndarray(dtype=ti.f32, ndim=2),
    ):
        for i in range(hits.shape[0]):
            ray = make_ray(
                vec3(origins[i, 0], origins[i, 1], origins[i, 2]),
                vec3(directions[i, 0], directions[i, 1], directions[i, 2]),
            )
            rec = self.intersect(ray)
            hits[i] = rec.hit
            ts[i] = rec.t
            for k in ti.static(range(3)):
                points[i, k] = rec.point[k]
                normals[i, k] = rec.normal[k]

    # =========================================================================
    # Kernel-side API (Taichi functions)
    # =========================================================================

    @ti.func
    def base_coordinates(self, point: vec3) -> vec2:
        """Fractional (row, col) grid coordinates of a world point."""
        pos = self._position[None]
        return vec2((point.z - pos.z) * self._depth_ratio, (point.x - pos.x) * self._width_ratio)

    @ti.func
    def int_base_coordinates(self, point: vec3) -> ivec2:
        """Integer (row, col) of the cell below a world point (unclamped)."""
        grid = self.base_coordinates(point)
        return ivec2(ti.cast(ti.floor(grid.x), ti.i32), ti.cast(ti.floor(grid.y), ti.i32))

    @ti.func
    def cell_at(self, row: ti.i32, col: ti.i32) -> Cell:
        """Cell at a grid index. The index must be inside the grid."""
        return self.cells[row * self._cols + col]

    @ti.func
    def hit_bounding_box(self, ray: Ray) -> AabbHit:
        """Slab test against this height map's bounding box."""
        return hit_aabb(ray.origin, ray.direction, self._aabb_min[None], self._aabb_max[None])

    @ti.func
    def check_cell(self, row: ti.i32, col: ti.i32, ray: Ray) -> TriangleHit:
        """Exact test against the two triangles of one cell."""
        pos = self._position[None]
        corner = vec3(
            pos.x + ti.cast(col, ti.f32) * self._cell_size_x,
            pos.y,
            pos.z + ti.cast(row, ti.f32) * self._cell_size_z,
        )
        top_left, top_right, bottom_left, bottom_right = cell_vertices(
            self.cell_at(row, col), corner, self._cell_size_x, self._cell_size_z, self._height
        )
        return hit_cell_triangles(
            ray.origin,
            ray.direction,
            top_left,
            top_right,
            bottom_left,
            bottom_right,
            0.0,
            T_INFINITY,
        )

    @ti.func
    def check_run(
        self,
        x_from: ti.i32,
        x_to: ti.i32,
        curr_z: ti.i32,
        x_entry: ti.f32,
        x_exit: ti.f32,
        init_y: ti.f32,
        slope_y: ti.f32,
        ray: Ray,
    ) -> TriangleHit:
        """Test the cells x_from .. x_to (inclusive) of row curr_z in order.

        The ray's height over the run is init_y + slope_y * (x - x_entry)
        for grid X between x_entry and x_exit. A cell is only tested exactly
        when the ray comes down to its maximum somewhere over the cell.

        Returns:
            The first hit in traversal order, or a miss.
        """
        result = make_triangle_miss()
        pos = self._position[None]

        step = 1
        if x_to < x_from:
            step = -1
        count = ti.abs(x_to - x_from) + 1

        span_low = ti.min(x_entry, x_exit)
        span_high = ti.max(x_entry, x_exit)

        for i in range(count):
            if result.hit == 0:
                col = x_from + i * step
                cell = self.cell_at(curr_z, col)

                # Ray height at both ends of this cell's part of the run
                a = tm.clamp(ti.cast(col, ti.f32), span_low, span_high)
                b = tm.clamp(ti.cast(col + 1, ti.f32), span_low, span_high)
                y_a = init_y + slope_y * (a - x_entry)
                y_b = init_y + slope_y * (b - x_entry)
                cell_top = pos.y + self._height * cell.max_height

                if ti.min(y_a, y_b) <= cell_top + CULL_EPSILON:
                    rec = self.check_cell(curr_z, col, ray)
                    if rec.hit == 1:
                        result = rec

        return result

    @ti.func
    def check_intersection_line(self, ray: Ray, t_start: ti.f32, t_end: ti.f32) -> HeightMapHit:
        """Walk the grid row by row between t_start and t_end.

        Args:
            ray: The ray to trace.
            t_start: Parameter where the walk starts (box entry, >= 0).
            t_end: Parameter where the ray leaves the bounding box.

        Returns:
            The nearest hit, or a miss.
        """
        result = make_heightmap_miss()

        # Ray in grid coordinates, measured from the walk's entry point
        entry = self.base_coordinates(ray_at(ray, t_start))
        gz0 = entry.x
        gx0 = entry.y
        gdx = ray.direction.x * self._width_ratio
        gdz = ray.direction.z * self._depth_ratio

        step_z = 0
        if gdz > 0.0:
            step_z = 1
        elif gdz < 0.0:
            step_z = -1

        curr_z = ti.cast(ti.floor(gz0), ti.i32)
        curr_z = ti.max(0, ti.min(curr_z, self._rows - 1))

        t = t_start
        active = 1
        for _ in range(self._rows + 2):
            if active == 1:
                # Parameter where the ray leaves the current row
                t_row_exit = t_end
                if step_z > 0:
                    t_row_exit = t_start + (ti.cast(curr_z + 1, ti.f32) - gz0) / gdz
                elif step_z < 0:
                    t_row_exit = t_start + (ti.cast(curr_z, ti.f32) - gz0) / gdz
                t_run_end = ti.max(t, ti.min(t_row_exit, t_end))

                x_entry = gx0 + (t - t_start) * gdx
                x_exit = gx0 + (t_run_end - t_start) * gdx
                y_entry = ray_at(ray, t).y
                y_exit = ray_at(ray, t_run_end).y

                x_from = ti.max(0, ti.min(ti.cast(ti.floor(x_entry), ti.i32), self._cols - 1))
                x_to = ti.max(0, ti.min(ti.cast(ti.floor(x_exit), ti.i32), self._cols - 1))

                init_y = y_entry
                slope_y = 0.0
                if ti.abs(x_exit - x_entry) > X_SPAN_EPSILON:
                    slope_y = (y_exit - y_entry) / (x_exit - x_entry)
                else:
                    init_y = ti.min(y_entry, y_exit)

                # Whole run above the highest cell of the row: skip it
                row_top = self._position[None].y + self._height * self.row_max_heights[curr_z]
                if ti.min(y_entry, y_exit) <= row_top + CULL_EPSILON:
                    rec = self.check_run(
                        x_from, x_to, curr_z, x_entry, x_exit, init_y, slope_y, ray
                    )
                    if rec.hit == 1:
                        result = HeightMapHit(
                            hit=1, t=rec.t, point=ray_at(ray, rec.t), normal=rec.normal
                        )
                        active = 0

                if active == 1:
                    t = t_run_end
                    curr_z += step_z
                    if step_z == 0 or t >= t_end or curr_z < 0 or curr_z >= self._rows:
                        active = 0

        return result

    @ti.func
    def intersect(self, ray: Ray) -> HeightMapHit:
        """Find the nearest intersection of a ray with the surface.

        This is the kernel-side query; call it once per ray from a parallel
        kernel. Never fails: degenerate rays simply miss.

        Args:
            ray: The ray to trace. Its direction need not be normalized.

        Returns:
            A HeightMapHit. Check the hit field to see whether an
            intersection was found.
        """
        result = make_heightmap_miss()
        # NaN directions fail this comparison too
        if length_squared(ray.direction) > 0.0:
            box = self.hit_bounding_box(ray)
            if box.hit == 1:
                t_start = ti.max(box.t_low, 0.0)
                result = self.check_intersection_line(ray, t_start, box.t_high)
        return result
