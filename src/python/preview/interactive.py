"""Interactive preview window using Taichi GGUI.

This module provides an interactive preview window for height map renders
using Taichi's ti.ui.Window and canvas system.

Features:
    - Taichi GGUI-based window (GPU-accelerated)
    - Support for updating display from numpy arrays or Taichi fields
    - ESC closes the window
    - Live rendering loop: the height map can be moved with the keyboard
      and the frame is re-rendered whenever it moves

Keys in run_renderer():
    - ESC: close the window
    - A / D: move the height map along -X / +X
    - W / S: move the height map along -Z / +Z
    - Q / E: move the height map down / up

Example:
    >>> import numpy as np
    >>> from src.python.preview.interactive import InteractivePreview
    >>>
    >>> preview = InteractivePreview(512, 512)
    >>> image = np.zeros((512, 512, 3), dtype=np.float32)
    >>> preview.update_image(image)
    >>> preview.run()
"""

import logging
import os
from datetime import datetime
from typing import TYPE_CHECKING, Any

import numpy as np
import numpy.typing as npt
import taichi as ti

if TYPE_CHECKING:
    from src.python.core.renderer import HeightMapRenderer

_LOGGER: logging.Logger = logging.getLogger(__name__)

# Key -> (axis, sign) for moving the height map in run_renderer()
_MOVE_KEYS = {
    "a": (0, -1.0),
    "d": (0, 1.0),
    "q": (1, -1.0),
    "e": (1, 1.0),
    "w": (2, -1.0),
    "s": (2, 1.0),
}

# Lazy kernel holder - kernel is created on first use after Taichi is initialized
_copy_field_kernel: Any = None


def _get_copy_field_kernel() -> Any:
    """Get or create the field copy kernel.

    The kernel is created lazily to ensure Taichi is initialized first.
    """
    global _copy_field_kernel
    if _copy_field_kernel is None:

        @ti.kernel
        def _kernel(src: ti.template(), dst: ti.template()):
            for i, j in src:
                dst[i, j] = src[i, j]

        _copy_field_kernel = _kernel
    return _copy_field_kernel


class InteractivePreview:
    """Interactive preview window using Taichi GGUI.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        display_image: Taichi field storing the display image (RGB float).
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        title: str = "Height Map - Interactive Preview",
    ) -> None:
        """Create the preview. The window itself opens lazily.

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            title: Window title.
        """
        self.width = width
        self.height = height
        self._title = title
        self._is_initialized = False

        # Defer window creation to support headless checks
        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None

        # Shape is (width, height) for Taichi field, RGB values stored as vec3
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(width, height)
        )

    def _initialize_window(self) -> None:
        if self._is_initialized:
            return

        self._window = ti.ui.Window(
            name=self._title,
            res=(self.width, self.height),
            vsync=True,
        )
        self._canvas = self._window.get_canvas()
        self._is_initialized = True

    @property
    def window(self) -> ti.ui.Window:
        """Get the Taichi GGUI window, initializing if needed."""
        if self._window is None:
            self._initialize_window()
        assert self._window is not None
        return self._window

    @property
    def canvas(self) -> ti.ui.Canvas:
        """Get the canvas for rendering."""
        if self._canvas is None:
            self._initialize_window()
        assert self._canvas is not None
        return self._canvas

    def update_image(self, image: npt.NDArray[np.float32]) -> None:
        """Update the display image from a numpy array.

        Args:
            image: NumPy array of shape (height, width, 3) with values in
                [0, 1]. Apply gamma correction beforehand if needed.

        Raises:
            ValueError: If image shape doesn't match (height, width, 3).
        """
        expected_shape = (self.height, self.width, 3)
        if image.shape != expected_shape:
            raise ValueError(
                f"Image shape {image.shape} doesn't match expected {expected_shape}"
            )

        # NumPy images are (height, width, channels) with a top-left origin
        image_transposed = np.ascontiguousarray(
            np.transpose(np.flipud(image), (1, 0, 2)), dtype=np.float32
        )
        self.display_image.from_numpy(image_transposed)

    def update_image_from_field(self, field: ti.MatrixField) -> None:
        """Update the display image from a Taichi field of shape (width, height)."""
        kernel = _get_copy_field_kernel()
        kernel(field, self.display_image)

    def handle_events(self) -> list[str]:
        """Process pending key presses.

        ESC stops the window. Other pressed keys are returned in order.
        """
        keys = []
        while self.window.get_event(ti.ui.PRESS):
            key = self.window.event.key
            if key == ti.ui.ESCAPE:
                self.close()
            else:
                keys.append(key)
        return keys

    def is_running(self) -> bool:
        """Check if the window is still open."""
        return self.window.running

    def show_frame(self) -> None:
        """Present the current display image."""
        self.canvas.set_image(self.display_image)
        self.window.show()

    def run(self) -> None:
        """Show the display image until the window is closed or ESC is pressed."""
        self._initialize_window()

        while self.is_running():
            self.handle_events()
            if not self.is_running():
                break
            self.show_frame()

    def run_renderer(
        self,
        renderer: "HeightMapRenderer",
        *,
        step: float = 0.25,
        gamma: float = 2.2,
    ) -> None:
        """Render live, moving the height map with the keyboard.

        The frame is only re-rendered after the height map has moved.

        Args:
            renderer: Renderer whose height map is displayed. Its size must
                match the window.
            step: World distance moved per key press.
            gamma: Gamma applied before display.

        Raises:
            ValueError: If the renderer size doesn't match the window.
        """
        if (renderer.width, renderer.height) != (self.width, self.height):
            raise ValueError(
                f"Renderer size {renderer.width}x{renderer.height} doesn't match "
                f"window size {self.width}x{self.height}"
            )

        self._initialize_window()
        self._renderer = renderer
        heightmap = renderer.heightmap
        dirty = True

        while self.is_running():
            for key in self.handle_events():
                if key in _MOVE_KEYS:
                    axis, sign = _MOVE_KEYS[key]
                    position = list(heightmap.position)
                    position[axis] += sign * step
                    heightmap.set_position(position)
                    _LOGGER.debug("Moved height map to %s", heightmap.position)
                    dirty = True
            if not self.is_running():
                break

            if dirty:
                renderer.render()
                self.update_image(renderer.get_image_numpy(gamma=gamma))
                dirty = False

            self._draw_gui_panel()
            self.show_frame()

    def get_renderer(self) -> Any:
        """The renderer driven by run_renderer(), or None."""
        return getattr(self, "_renderer", None)

    def _draw_gui_panel(self) -> None:
        """Draw the info panel with an export button."""
        renderer = self._renderer
        with self.window.GUI.sub_window("Height Map", 0.02, 0.02, 0.3, 0.16) as gui:
            gui.text(f"Mode: {renderer.settings.mode}")
            x, y, z = renderer.heightmap.position
            gui.text(f"Position: ({x:.2f}, {y:.2f}, {z:.2f})")
            if gui.button("Export PNG"):
                self._export_png()

    def _export_png(self) -> None:
        """Export the current frame to a timestamped PNG file."""
        from src.python.preview.export import save_png

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"heightmap_{timestamp}.png"

        renderer = self.get_renderer()
        if renderer is not None:
            save_png(renderer, filename, gamma=2.2)
            print(f"Exported: {filename}")
        else:
            print("Error: No renderer available for export")

    def close(self) -> None:
        """Close the preview window."""
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering.

        Returns:
            True if a display is available, False for headless environments.
        """
        display = os.environ.get("DISPLAY")
        wayland = os.environ.get("WAYLAND_DISPLAY")

        # On macOS, display is always available if not in SSH
        if os.uname().sysname == "Darwin":
            ssh_connection = os.environ.get("SSH_CONNECTION")
            if ssh_connection and not display:
                return False
            return True

        # On Linux, check for X11 or Wayland
        if display or wayland:
            return True

        # Windows generally always has display
        if os.name == "nt":
            return True

        return False
