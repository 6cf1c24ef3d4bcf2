#!/usr/bin/env python3
"""Interactive height map viewer.

Opens a preview window showing a terrain scene and re-renders it whenever
the height map is moved.

Usage:
    python -m examples.interactive_heightmap [--scene NAME | --image PATH] [--mode MODE]

Controls:
    - A / D: move the terrain along X
    - W / S: move the terrain along Z
    - Q / E: move the terrain down / up
    - Export PNG: save the current frame with a timestamp
    - ESC: close the window
"""

from __future__ import annotations

import argparse
import logging
import platform
import sys
from pathlib import Path

# Ensure the project root is in the Python path for direct execution
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import taichi as ti  # noqa: E402

WINDOW_SIZE = 512


def initialize_taichi() -> str:
    """Initialize Taichi with the best available backend.

    On macOS, prefers Metal. Falls back to CPU if GPU is unavailable.

    Returns:
        Name of the backend being used.
    """
    system = platform.system()

    if system == "Darwin":
        # macOS: prefer Metal
        try:
            ti.init(arch=ti.metal)
            return "Metal (GPU)"
        except Exception:
            pass

    # Try generic GPU (CUDA on Linux/Windows, Vulkan as fallback)
    try:
        ti.init(arch=ti.gpu)
        return "GPU"
    except Exception:
        pass

    ti.init(arch=ti.cpu)
    return "CPU"


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the interactive height map viewer.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = argparse.ArgumentParser(description="Interactive height map viewer.")
    parser.add_argument("--scene", default="hills", help="Preset name (default: hills)")
    parser.add_argument("--image", default=None, help="Grayscale height image")
    parser.add_argument("--mode", choices=("albedo", "normal", "depth"), default="normal")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")

    # Initialize Taichi first (before importing modules that allocate fields)
    backend = initialize_taichi()
    print(f"Taichi backend: {backend}")

    from src.python.core.renderer import HeightMapRenderer, RenderSettings
    from src.python.preview.interactive import InteractivePreview
    from src.python.scene.terrain_scenes import create_terrain_scene

    if not InteractivePreview.is_display_available():
        print("Error: No display available. Cannot run interactive preview.")
        print("This script requires a graphical display environment.")
        return 1

    try:
        heightmap, camera = create_terrain_scene(args.image or args.scene)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    renderer = HeightMapRenderer(
        heightmap,
        RenderSettings(width=WINDOW_SIZE, height=WINDOW_SIZE, mode=args.mode, max_depth=30.0),
    )
    renderer.set_camera(camera)

    print(f"Creating interactive preview window ({WINDOW_SIZE}x{WINDOW_SIZE})...")
    preview = InteractivePreview(WINDOW_SIZE, WINDOW_SIZE)

    print("Starting interactive rendering...")
    print("  - A/D, W/S, Q/E move the terrain")
    print("  - Click 'Export PNG' to save current render")
    print("  - Press ESC or close the window to exit")
    print()

    try:
        preview.run_renderer(renderer)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
    finally:
        preview.close()
        print("Preview window closed.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
