"""Heightfield cell: four corner heights and their maximum.

A cell is one quad of the heightfield mesh. Its corners come from four
adjacent height samples:

    top_left  = sample(r, c)        top_right    = sample(r, c + 1)
    bottom_left = sample(r + 1, c)  bottom_right = sample(r + 1, c + 1)

"Top" is the lower row index (smaller world Z), "left" the lower column index
(smaller world X). The quad is split into the two triangles
(top_left, top_right, bottom_left) and (top_right, bottom_right, bottom_left).

max_height is stored next to the corners so the traversal can cull a cell
without looking at the triangles. It is only ever produced by make_cell()
(kernel side) or cells_from_samples() (host side), which keeps it equal to the
maximum of the four corners.

Example:
    >>> import numpy as np
    >>> from src.python.geometry.cell import cells_from_samples
    >>> corners = cells_from_samples(np.array([[0.0, 1.0], [0.5, 0.25]]))
    >>> float(corners["max_height"][0])
    1.0
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Corner names in the order the constructor takes them
CORNER_NAMES = ("top_left", "top_right", "bottom_left", "bottom_right")


@ti.dataclass
class Cell:
    """Four corner heights of a heightfield quad.

    Heights are stored as sample values (normalized intensity or raw
    elevation); the owning height map scales them into world space.

    Attributes:
        top_left: Sample at (row, col).
        top_right: Sample at (row, col + 1).
        bottom_left: Sample at (row + 1, col).
        bottom_right: Sample at (row + 1, col + 1).
        max_height: Maximum of the four corners.
    """

    top_left: ti.f32
    top_right: ti.f32
    bottom_left: ti.f32
    bottom_right: ti.f32
    max_height: ti.f32


@ti.func
def make_cell(
    top_left: ti.f32,
    top_right: ti.f32,
    bottom_left: ti.f32,
    bottom_right: ti.f32,
) -> Cell:
    """Create a cell from its corners, deriving max_height."""
    max_height = ti.max(ti.max(top_left, top_right), ti.max(bottom_left, bottom_right))
    return Cell(
        top_left=top_left,
        top_right=top_right,
        bottom_left=bottom_left,
        bottom_right=bottom_right,
        max_height=max_height,
    )


@ti.func
def cell_vertices(
    cell: Cell,
    corner: vec3,
    size_x: ti.f32,
    size_z: ti.f32,
    height_scale: ti.f32,
):
    """Compute the world-space corner vertices of a cell.

    Args:
        cell: The cell to expand.
        corner: World position of the top-left corner at zero elevation.
        size_x: Cell extent along world X (one grid column).
        size_z: Cell extent along world Z (one grid row).
        height_scale: Factor mapping sample values to world Y.

    Returns:
        Tuple (top_left, top_right, bottom_left, bottom_right) of vec3.
    """
    top_left = corner + vec3(0.0, height_scale * cell.top_left, 0.0)
    top_right = corner + vec3(size_x, height_scale * cell.top_right, 0.0)
    bottom_left = corner + vec3(0.0, height_scale * cell.bottom_left, size_z)
    bottom_right = corner + vec3(size_x, height_scale * cell.bottom_right, size_z)
    return top_left, top_right, bottom_left, bottom_right


@dataclass(frozen=True)
class CellInfo:
    """Host-side view of a single cell.

    Attributes:
        top_left: Sample at (row, col).
        top_right: Sample at (row, col + 1).
        bottom_left: Sample at (row + 1, col).
        bottom_right: Sample at (row + 1, col + 1).
    """

    top_left: float
    top_right: float
    bottom_left: float
    bottom_right: float

    @property
    def max_height(self) -> float:
        """Maximum of the four corners."""
        return max(self.top_left, self.top_right, self.bottom_left, self.bottom_right)

    @property
    def corners(self) -> tuple[float, float, float, float]:
        """Corners in (top_left, top_right, bottom_left, bottom_right) order."""
        return (self.top_left, self.top_right, self.bottom_left, self.bottom_right)


def cells_from_samples(
    samples: npt.ArrayLike,
) -> dict[str, npt.NDArray[np.float32]]:
    """Build the cell grid of an (H, W) sample grid.

    Cell (r, c) takes its corners from samples (r, c), (r, c + 1),
    (r + 1, c) and (r + 1, c + 1), so adjacent cells share the two corner
    values of their common edge.

    Args:
        samples: 2D array of height samples with at least 2 rows and 2 columns.

    Returns:
        Dictionary keyed by Cell member name. Each value is a flat float32
        array of length (H - 1) * (W - 1) in row-major order, ready for
        Cell.field(...).from_numpy().

    Raises:
        ValueError: If samples is not 2D or is smaller than 2x2.
    """
    grid = np.asarray(samples, dtype=np.float32)
    if grid.ndim != 2:
        raise ValueError(f"Height samples must be a 2D array, got shape {grid.shape}")
    if grid.shape[0] < 2 or grid.shape[1] < 2:
        raise ValueError(
            f"Height samples must be at least 2x2 to form a cell, got {grid.shape}"
        )

    top_left = grid[:-1, :-1]
    top_right = grid[:-1, 1:]
    bottom_left = grid[1:, :-1]
    bottom_right = grid[1:, 1:]
    max_height = np.maximum(
        np.maximum(top_left, top_right), np.maximum(bottom_left, bottom_right)
    )

    return {
        "top_left": np.ascontiguousarray(top_left).reshape(-1),
        "top_right": np.ascontiguousarray(top_right).reshape(-1),
        "bottom_left": np.ascontiguousarray(bottom_left).reshape(-1),
        "bottom_right": np.ascontiguousarray(bottom_right).reshape(-1),
        "max_height": np.ascontiguousarray(max_height).reshape(-1),
    }
