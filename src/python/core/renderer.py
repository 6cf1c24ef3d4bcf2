"""Frame renderer for height maps.

Casts one primary ray per pixel through the pinhole camera and asks the
height map for the nearest hit. There is no light transport: each pixel is
coloured directly from the hit record.

Modes:
    - "albedo": the material's albedo on hit
    - "normal": the surface normal mapped from [-1, 1] to [0, 1] per channel
    - "depth": a grey ramp, white at the camera fading to black at max_depth

Missed pixels get the background colour.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from src.python.core.renderer import HeightMapRenderer, RenderSettings
    >>> from src.python.scene.terrain_scenes import create_terrain_scene
    >>>
    >>> heightmap, camera = create_terrain_scene("hills")
    >>> renderer = HeightMapRenderer(heightmap, RenderSettings(width=640, height=480))
    >>> renderer.set_camera(camera)
    >>> renderer.render()
    >>> image = renderer.get_image_numpy()
"""

import logging
import time
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.python.camera.pinhole import PinholeCamera, get_pixel_ray, setup_camera
from src.python.heightmap.heightmap import HeightMap
from src.python.heightmap.intersection import HeightMapHit
from src.python.materials.material import DEFAULT_MATERIAL, Material

_LOGGER: logging.Logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Render Settings
# =============================================================================

RENDER_MODES = ("albedo", "normal", "depth")

# Mode indices used as compile-time constants in the kernel
_MODE_INDEX = {name: index for index, name in enumerate(RENDER_MODES)}
MODE_ALBEDO = _MODE_INDEX["albedo"]
MODE_NORMAL = _MODE_INDEX["normal"]
MODE_DEPTH = _MODE_INDEX["depth"]

# Maximum supported image dimensions
MAX_IMAGE_WIDTH = 4096
MAX_IMAGE_HEIGHT = 4096


@dataclass
class RenderSettings:
    """Configuration for a frame.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        mode: One of "albedo", "normal" or "depth".
        background: Colour of pixels whose ray misses the height map.
        max_depth: Distance that maps to black in depth mode.

    Raises:
        ValueError: If any value is out of range.
    """

    width: int = 512
    height: int = 512
    mode: str = "albedo"
    background: tuple[float, float, float] = (0.53, 0.71, 0.92)
    max_depth: float = 10.0

    def __post_init__(self) -> None:
        if not (0 < self.width <= MAX_IMAGE_WIDTH and 0 < self.height <= MAX_IMAGE_HEIGHT):
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) must be positive and at most "
                f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
            )
        if self.mode not in RENDER_MODES:
            raise ValueError(f"Unknown render mode {self.mode!r}, expected one of {RENDER_MODES}")
        if len(self.background) != 3:
            raise ValueError(f"Background must have 3 components, got {len(self.background)}")
        if not self.max_depth > 0.0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height


# =============================================================================
# Renderer
# =============================================================================


@ti.data_oriented
class HeightMapRenderer:
    """Renders a single height map through the pinhole camera.

    The camera is global state (see camera.pinhole): call set_camera() or
    setup_camera() before render().

    Args:
        heightmap: The height map to render.
        settings: Frame configuration. Defaults to RenderSettings().
    """

    def __init__(self, heightmap: HeightMap, settings: RenderSettings | None = None) -> None:
        self.heightmap = heightmap
        self.settings = settings if settings is not None else RenderSettings()

        self._width = self.settings.width
        self._height = self.settings.height
        self._mode = _MODE_INDEX[self.settings.mode]
        self._max_depth = float(self.settings.max_depth)

        material = heightmap.material
        if not isinstance(material, Material):
            material = DEFAULT_MATERIAL

        self.color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(self._width, self._height))
        self.hit_mask = ti.field(dtype=ti.i32, shape=(self._width, self._height))
        self._albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._background = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._albedo[None] = list(material.albedo)
        self._background[None] = [float(c) for c in self.settings.background]

        _LOGGER.debug(
            "Renderer ready: %dx%d, mode=%s, material=%s",
            self._width,
            self._height,
            self.settings.mode,
            material.name,
        )

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def set_camera(self, camera: PinholeCamera) -> None:
        """Set up the global camera for this renderer's frames."""
        setup_camera(camera)

    @ti.func
    def shade(self, rec: HeightMapHit) -> vec3:
        """Colour for one hit record."""
        color = self._background[None]
        if rec.hit == 1:
            if ti.static(self._mode == MODE_NORMAL):
                color = 0.5 * (rec.normal + vec3(1.0, 1.0, 1.0))
            else:
                if ti.static(self._mode == MODE_DEPTH):
                    value = 1.0 - tm.clamp(rec.t / self._max_depth, 0.0, 1.0)
                    color = vec3(value, value, value)
                else:
                    color = self._albedo[None]
        return color

    @ti.kernel
    def _render_kernel(self):
        for i, j in self.color_buffer:
            ray = get_pixel_ray(i, j, self._width, self._height)
            rec = self.heightmap.intersect(ray)
            self.hit_mask[i, j] = rec.hit
            self.color_buffer[i, j] = self.shade(rec)

    @ti.kernel
    def _render_pixel_kernel(self, pixel_i: ti.i32, pixel_j: ti.i32) -> vec3:
        ray = get_pixel_ray(pixel_i, pixel_j, self._width, self._height)
        return self.shade(self.heightmap.intersect(ray))

    def render(self) -> None:
        """Render the full frame into the colour buffer."""
        start = time.perf_counter()
        self._render_kernel()
        ti.sync()
        _LOGGER.info(
            "Rendered %dx%d %s frame in %.3f s",
            self._width,
            self._height,
            self.settings.mode,
            time.perf_counter() - start,
        )

    def render_pixel(self, pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
        """Render a single pixel without touching the colour buffer.

        Args:
            pixel_i: Pixel x-coordinate (0 = left).
            pixel_j: Pixel y-coordinate (0 = bottom).

        Returns:
            Tuple of (R, G, B) color values.

        Raises:
            IndexError: If the pixel is outside the image.
        """
        if not (0 <= pixel_i < self._width and 0 <= pixel_j < self._height):
            raise IndexError(
                f"Pixel ({pixel_i}, {pixel_j}) is outside the {self._width}x{self._height} image"
            )
        color = self._render_pixel_kernel(pixel_i, pixel_j)
        return (float(color[0]), float(color[1]), float(color[2]))

    def hit_count(self) -> int:
        """Number of pixels whose ray hit the height map in the last frame."""
        return int(self.hit_mask.to_numpy().sum())

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).

        Returns:
            NumPy array of shape (height, width, 3) with values in [0, 1].
        """
        image = self.color_buffer.to_numpy()

        # Transpose from (width, height, 3) to (height, width, 3)
        image = np.transpose(image, (1, 0, 2))

        # Flip vertically (Taichi uses bottom-left origin, images use top-left)
        image = np.flipud(image)

        image = np.clip(image, 0.0, 1.0)
        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma)

        return np.ascontiguousarray(image, dtype=np.float32)

    def __repr__(self) -> str:
        return (
            f"HeightMapRenderer(width={self._width}, height={self._height}, "
            f"mode={self.settings.mode!r})"
        )
