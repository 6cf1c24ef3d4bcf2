"""Preview module for output and visualization.

Components:
    display: Matplotlib-based preview display
    export: PNG export utilities
    interactive: Taichi GGUI-based interactive preview window

Example:
    >>> from src.python.preview import show_preview, save_png
    >>> from src.python.core.renderer import HeightMapRenderer
    >>>
    >>> renderer = HeightMapRenderer(heightmap)
    >>> renderer.render()
    >>> show_preview(renderer)
    >>> save_png(renderer, "output.png", gamma=2.2)

For interactive GGUI preview:
    >>> from src.python.preview import InteractivePreview
    >>> preview = InteractivePreview(512, 512)
    >>> preview.update_image(image_array)
    >>> preview.run()
"""

from src.python.preview.display import (
    apply_gamma,
    process_image_for_display,
    show_preview,
)
from src.python.preview.export import (
    image_to_uint8,
    save_png,
    save_png_from_array,
)
from src.python.preview.interactive import InteractivePreview

__all__ = [
    # Interactive preview
    "InteractivePreview",
    # Display functions
    "show_preview",
    "apply_gamma",
    "process_image_for_display",
    # Export functions
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
]
