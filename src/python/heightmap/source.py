"""Height sample sources.

A height map is built from any object exposing image_width, image_height and
intensity_at(row, col). Two implementations are provided:

- ArrayHeightSource wraps an in-memory 2D array (raw elevations or
  normalized intensities).
- HeightMapReader loads a grayscale image with Pillow and normalizes it to
  [0, 1]. 8-bit images are divided by 255, 16-bit images by 65535; float
  ("F" mode) images are kept as raw elevations.

Example:
    >>> from src.python.heightmap.source import HeightMapReader
    >>> reader = HeightMapReader("terrain.png")
    >>> reader.image_width, reader.image_height
    (257, 257)
    >>> reader.intensity_at(0, 0)
    0.42
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

_LOGGER: logging.Logger = logging.getLogger(__name__)

# Pillow modes holding 16-bit unsigned samples
_SIXTEEN_BIT_MODES = ("I;16", "I;16B", "I;16L", "I;16N")


class HeightSampleSource(Protocol):
    """Anything that can hand out a rectangular grid of height samples."""

    @property
    def image_width(self) -> int:
        """Number of sample columns."""
        ...

    @property
    def image_height(self) -> int:
        """Number of sample rows."""
        ...

    def intensity_at(self, row: int, col: int) -> float:
        """Sample at (row, col), for row < image_height and col < image_width."""
        ...


class ArrayHeightSource:
    """Height samples backed by a 2D NumPy array.

    Args:
        samples: Array-like of shape (rows, cols).

    Raises:
        ValueError: If samples is not two-dimensional.
    """

    def __init__(self, samples: npt.ArrayLike) -> None:
        array = np.asarray(samples, dtype=np.float32)
        if array.ndim != 2:
            raise ValueError(f"Height samples must be a 2D array, got shape {array.shape}")
        self._samples = np.ascontiguousarray(array)

    @property
    def image_width(self) -> int:
        return int(self._samples.shape[1])

    @property
    def image_height(self) -> int:
        return int(self._samples.shape[0])

    @property
    def samples(self) -> npt.NDArray[np.float32]:
        """The full (rows, cols) sample grid."""
        return self._samples

    def intensity_at(self, row: int, col: int) -> float:
        return float(self._samples[row, col])


class HeightMapReader(ArrayHeightSource):
    """Load height samples from a grayscale image.

    Color images are converted to 8-bit luminance first.

    Args:
        path: Path to the image file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the image is smaller than 2x2 pixels.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        if not self._path.is_file():
            raise FileNotFoundError(f"Height map image not found: {self._path}")

        with PILImage.open(self._path) as image:
            samples = _image_to_samples(image)

        if samples.shape[0] < 2 or samples.shape[1] < 2:
            raise ValueError(
                f"Height map image must be at least 2x2 pixels, got "
                f"{samples.shape[1]}x{samples.shape[0]}"
            )

        super().__init__(samples)
        _LOGGER.debug(
            "Read %dx%d height samples from %s", self.image_width, self.image_height, self._path
        )

    @property
    def path(self) -> Path:
        """Path of the source image."""
        return self._path


def _image_to_samples(image: PILImage.Image) -> npt.NDArray[np.float32]:
    """Convert a Pillow image to a float32 sample grid."""
    if image.mode in _SIXTEEN_BIT_MODES:
        return np.asarray(image.convert("I"), dtype=np.float32) / 65535.0
    if image.mode == "F":
        return np.asarray(image, dtype=np.float32)
    return np.asarray(image.convert("L"), dtype=np.float32) / 255.0


def read_samples(source: HeightSampleSource) -> npt.NDArray[np.float32]:
    """Read every sample of a source into a (rows, cols) float32 array.

    Consumes exactly image_height x image_width samples.

    Args:
        source: The sample source.

    Returns:
        The sample grid.
    """
    if isinstance(source, ArrayHeightSource):
        return source.samples

    rows, cols = source.image_height, source.image_width
    samples = np.empty((rows, cols), dtype=np.float32)
    for row in range(rows):
        for col in range(cols):
            samples[row, col] = source.intensity_at(row, col)
    return samples
