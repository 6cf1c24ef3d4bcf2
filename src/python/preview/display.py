"""Matplotlib-based preview display for rendered frames.

Frames from HeightMapRenderer are already in [0, 1] (albedo, normal or
depth colours), so display only needs gamma correction and clamping.

Example:
    >>> from src.python.preview.display import show_preview
    >>> from src.python.core.renderer import HeightMapRenderer
    >>>
    >>> renderer = HeightMapRenderer(heightmap)
    >>> renderer.render()
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from src.python.core.renderer import HeightMapRenderer


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Apply gamma correction for display.

    Args:
        image: Linear image array of shape (H, W, 3) in [0, 1] range.
        gamma: Gamma value (default 2.2 for sRGB).

    Returns:
        Gamma corrected image.

    Raises:
        ValueError: If gamma is not positive.
    """
    if not gamma > 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)

    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Gamma correct and clamp an image to [0, 1].

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma correction value (default 2.2 for sRGB).

    Returns:
        Processed image ready for display, in [0, 1] range.
    """
    result = apply_gamma(np.asarray(image, dtype=np.float32).copy(), gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


def show_preview(
    renderer: HeightMapRenderer,
    *,
    gamma: float = 2.2,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Display the last rendered frame as a Matplotlib figure.

    Args:
        renderer: The renderer holding the frame.
        gamma: Gamma correction value (default 2.2 for sRGB).
        title: Custom title (default shows the mode and hit count).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(renderer.get_image_numpy(), gamma=gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"Height map - {renderer.settings.mode} ({renderer.hit_count()} pixels hit)"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
