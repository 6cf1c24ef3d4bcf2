"""Image export utilities for rendered frames.

Frames are saved as 8-bit PNG files via Pillow.

Example:
    >>> from src.python.preview.export import save_png
    >>> renderer.render()
    >>> save_png(renderer, "terrain.png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.python.preview.display import process_image_for_display

if TYPE_CHECKING:
    from src.python.core.renderer import HeightMapRenderer

_LOGGER: logging.Logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = 2.2,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float32 image to uint8 for display/export.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 2.2 for sRGB).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image_for_display(image, gamma=gamma)
    return np.round(processed * 255.0).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = 2.2,
) -> None:
    """Save a NumPy array as a PNG file.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (default 2.2 for sRGB).

    Raises:
        ValueError: If image is not of shape (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")

    PILImage.fromarray(image_to_uint8(image, gamma=gamma)).save(filepath)
    _LOGGER.debug("Saved %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def save_png(
    renderer: HeightMapRenderer,
    filepath: str | Path,
    *,
    gamma: float = 2.2,
) -> None:
    """Save the renderer's last frame as a PNG file.

    Args:
        renderer: The renderer holding the frame.
        filepath: Output file path (should end in .png).
        gamma: Gamma correction value (default 2.2 for sRGB).
    """
    save_png_from_array(renderer.get_image_numpy(), filepath, gamma=gamma)
