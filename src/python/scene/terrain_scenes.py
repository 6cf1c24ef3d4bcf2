"""Terrain scene presets.

This module provides factory functions for height map test scenes: a few
procedural sample grids, a registry of named presets and a function that
builds a HeightMap plus a camera framing it.

Presets:
- flat: a level plane at mid height
- ramp: a plane rising linearly along +X
- pyramid: a four-sided pyramid peaking in the centre
- hills: a sum of random Gaussian bumps (seeded, reproducible)

Any other name is treated as the path of a grayscale height image.

The terrain is centred on the origin in X and Z with its lowest possible
elevation at y = 0, so the camera setup is the same for every preset.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.python.scene.terrain_scenes import create_terrain_scene
    >>> from src.python.camera.pinhole import setup_camera
    >>>
    >>> heightmap, camera = create_terrain_scene("pyramid")
    >>> setup_camera(camera)
    >>> # Now render using the height map and camera
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import numpy.typing as npt

from src.python.camera.pinhole import PinholeCamera
from src.python.heightmap.heightmap import HeightMap
from src.python.heightmap.source import HeightMapReader
from src.python.materials.material import Material

_LOGGER: logging.Logger = logging.getLogger(__name__)

# =============================================================================
# Terrain Scene Parameters
# =============================================================================


@dataclass
class TerrainSceneParams:
    """Parameters for configuring a terrain scene.

    Attributes:
        resolution: Samples per side for procedural presets (the grid has
            resolution - 1 cells per side). Ignored for image files.
        width: World extent along X.
        height: World height of a sample value of 1.0.
        depth: World extent along Z.
        seed: Random seed for the hills preset.
        vfov: Camera vertical field of view in degrees.
        aspect_ratio: Camera aspect ratio (image width / height).

    Example:
        >>> params = TerrainSceneParams()
        >>> params.resolution
        65
        >>> custom = TerrainSceneParams(resolution=129, height=3.0, seed=7)
    """

    resolution: int = 65
    width: float = 10.0
    height: float = 2.0
    depth: float = 10.0
    seed: int = 0
    vfov: float = 45.0
    aspect_ratio: float = 1.0

    def __post_init__(self) -> None:
        if self.resolution < 2:
            raise ValueError(f"resolution must be at least 2, got {self.resolution}")


# =============================================================================
# Procedural Sample Grids
# =============================================================================


def _unit_grid(resolution: int) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.float32]]:
    """Column and row coordinates in [-1, 1], each of shape (resolution, resolution)."""
    axis = np.linspace(-1.0, 1.0, resolution, dtype=np.float32)
    x, z = np.meshgrid(axis, axis)
    return x, z


def flat_samples(resolution: int, level: float = 0.5) -> npt.NDArray[np.float32]:
    """A level plane."""
    return np.full((resolution, resolution), level, dtype=np.float32)


def ramp_samples(resolution: int) -> npt.NDArray[np.float32]:
    """A plane rising from 0 at the first column to 1 at the last."""
    x, _ = _unit_grid(resolution)
    return ((x + 1.0) * 0.5).astype(np.float32)


def pyramid_samples(resolution: int) -> npt.NDArray[np.float32]:
    """A pyramid with height 1 at the centre and 0 along the border."""
    x, z = _unit_grid(resolution)
    return (1.0 - np.maximum(np.abs(x), np.abs(z))).astype(np.float32)


def hills_samples(resolution: int, seed: int = 0, num_hills: int = 12) -> npt.NDArray[np.float32]:
    """Random Gaussian hills normalized to [0, 1].

    Args:
        resolution: Samples per side.
        seed: Seed for numpy's random generator.
        num_hills: Number of bumps to add.

    Returns:
        Array of shape (resolution, resolution).
    """
    rng = np.random.default_rng(seed)
    x, z = _unit_grid(resolution)
    samples = np.zeros_like(x)

    for _ in range(num_hills):
        cx, cz = rng.uniform(-1.0, 1.0, size=2)
        radius = rng.uniform(0.15, 0.5)
        amplitude = rng.uniform(0.3, 1.0)
        samples += amplitude * np.exp(-((x - cx) ** 2 + (z - cz) ** 2) / (2.0 * radius**2))

    low, high = float(samples.min()), float(samples.max())
    if high - low > 0.0:
        samples = (samples - low) / (high - low)
    return samples.astype(np.float32)


# =============================================================================
# Preset Registry
# =============================================================================

SampleGenerator = Callable[[TerrainSceneParams], npt.NDArray[np.float32]]

SCENE_PRESETS: dict[str, tuple[SampleGenerator, Material]] = {
    "flat": (
        lambda p: flat_samples(p.resolution),
        Material(name="sand", albedo=(0.76, 0.7, 0.5)),
    ),
    "ramp": (
        lambda p: ramp_samples(p.resolution),
        Material(name="stone", albedo=(0.55, 0.55, 0.55)),
    ),
    "pyramid": (
        lambda p: pyramid_samples(p.resolution),
        Material(name="sandstone", albedo=(0.8, 0.62, 0.4)),
    ),
    "hills": (
        lambda p: hills_samples(p.resolution, seed=p.seed),
        Material(name="grass", albedo=(0.35, 0.55, 0.2)),
    ),
}

# Material for terrains loaded from image files
IMAGE_TERRAIN_MATERIAL = Material(name="terrain", albedo=(0.6, 0.55, 0.45))


# =============================================================================
# Terrain Scene Factory
# =============================================================================


def terrain_camera(heightmap: HeightMap, params: TerrainSceneParams) -> PinholeCamera:
    """A camera looking down at the centre of a height map from the +Z side.

    Args:
        heightmap: The height map to frame.
        params: Scene parameters (field of view and aspect ratio).

    Returns:
        A PinholeCamera framing the whole terrain.
    """
    aabb_min, aabb_max = heightmap.aabb
    center = tuple((lo + hi) / 2.0 for lo, hi in zip(aabb_min, aabb_max))
    extent = max(heightmap.width, heightmap.depth)

    return PinholeCamera(
        lookfrom=(
            center[0],
            aabb_max[1] + 0.6 * extent,
            center[2] + 1.1 * extent,
        ),
        lookat=center,
        vup=(0.0, 1.0, 0.0),
        vfov=params.vfov,
        aspect_ratio=params.aspect_ratio,
    )


def create_terrain_scene(
    scene: str | Path = "hills",
    params: TerrainSceneParams | None = None,
) -> tuple[HeightMap, PinholeCamera]:
    """Create a terrain scene from a preset name or a height image.

    Args:
        scene: Name of an entry in SCENE_PRESETS, or the path of a
            grayscale image (anything with a file suffix or a directory part).
        params: Optional TerrainSceneParams. If None, uses the defaults.

    Returns:
        A tuple of (HeightMap, PinholeCamera).

    Raises:
        ValueError: If scene is neither a preset name nor a path.
        FileNotFoundError: If scene is a path that does not exist.
    """
    if params is None:
        params = TerrainSceneParams()

    position = (-params.width / 2.0, 0.0, -params.depth / 2.0)
    name = str(scene)

    if name in SCENE_PRESETS:
        generator, material = SCENE_PRESETS[name]
        heightmap = HeightMap.from_array(
            generator(params),
            position=position,
            width=params.width,
            height=params.height,
            depth=params.depth,
            material=material,
        )
    else:
        path = Path(scene)
        if not path.suffix and path.parent == Path("."):
            raise ValueError(
                f"Unknown terrain scene {name!r}, expected one of {sorted(SCENE_PRESETS)} "
                "or an image path"
            )
        heightmap = HeightMap(
            HeightMapReader(path),
            position=position,
            width=params.width,
            height=params.height,
            depth=params.depth,
            material=IMAGE_TERRAIN_MATERIAL,
        )

    _LOGGER.debug(
        "Created terrain scene %r: %dx%d cells", name, heightmap.map_height, heightmap.map_width
    )
    return heightmap, terrain_camera(heightmap, params)
