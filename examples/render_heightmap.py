#!/usr/bin/env python3
"""Render a height map scene to a PNG file.

Builds a terrain from a named preset or a grayscale image, frames it with a
pinhole camera and casts one primary ray per pixel.

Usage:
    python -m examples.render_heightmap [options]

Options:
    --scene NAME        Preset name: flat, ramp, pyramid, hills (default: hills)
    --image PATH        Grayscale height image (overrides --scene)
    --width WIDTH       Image width in pixels (default: 512)
    --height HEIGHT     Image height in pixels (default: 512)
    --resolution N      Samples per side for presets (default: 65)
    --terrain-height H  World height of a full-intensity sample (default: 2.0)
    --mode MODE         albedo, normal or depth (default: albedo)
    --output OUTPUT     Output file path (default: heightmap.png)
    --verbose           Log debug output
    --quiet             Suppress progress output

Example:
    python -m examples.render_heightmap --scene pyramid --mode normal --width 256 --height 256
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

_LOGGER = logging.getLogger("render_heightmap")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a height map scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        type=str,
        default="hills",
        help="Preset name: flat, ramp, pyramid, hills (default: hills)",
    )
    parser.add_argument(
        "--image",
        type=str,
        default=None,
        help="Grayscale height image, overrides --scene",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=512,
        help="Image width in pixels (default: 512)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=512,
        help="Image height in pixels (default: 512)",
    )
    parser.add_argument(
        "--resolution",
        type=int,
        default=65,
        help="Samples per side for presets (default: 65)",
    )
    parser.add_argument(
        "--terrain-height",
        type=float,
        default=2.0,
        help="World height of a full-intensity sample (default: 2.0)",
    )
    parser.add_argument(
        "--mode",
        choices=("albedo", "normal", "depth"),
        default="albedo",
        help="Shading mode (default: albedo)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="heightmap.png",
        help="Output file path (default: heightmap.png)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_heightmap(
    scene: str = "hills",
    width: int = 512,
    height: int = 512,
    resolution: int = 65,
    terrain_height: float = 2.0,
    mode: str = "albedo",
    output_path: str = "heightmap.png",
    quiet: bool = False,
) -> Path:
    """Render a terrain scene and save it to file.

    Args:
        scene: Preset name or image path.
        width: Image width in pixels.
        height: Image height in pixels.
        resolution: Samples per side for presets.
        terrain_height: World height of a full-intensity sample.
        mode: Shading mode.
        output_path: Output file path (PNG).
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.python.core.renderer import HeightMapRenderer, RenderSettings
    from src.python.preview.export import save_png
    from src.python.scene.terrain_scenes import TerrainSceneParams, create_terrain_scene

    if not quiet:
        print(f"Creating terrain scene {scene!r} ({width}x{height})...")

    params = TerrainSceneParams(
        resolution=resolution,
        height=terrain_height,
        aspect_ratio=width / height,
    )
    heightmap, camera = create_terrain_scene(scene, params)

    aabb_min, aabb_max = heightmap.aabb
    settings = RenderSettings(
        width=width,
        height=height,
        mode=mode,
        max_depth=3.0 * max(aabb_max[0] - aabb_min[0], aabb_max[2] - aabb_min[2]),
    )
    renderer = HeightMapRenderer(heightmap, settings)
    renderer.set_camera(camera)

    if not quiet:
        print(f"Rendering {heightmap.map_height}x{heightmap.map_width} cells ({mode})...")

    start_time = time.time()
    renderer.render()

    output_file = Path(output_path)
    save_png(renderer, output_file, gamma=2.2)

    total_time = time.time() - start_time
    _LOGGER.info("Wrote %s, %d of %d pixels hit", output_file, renderer.hit_count(), width * height)
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_heightmap(
            scene=args.image if args.image is not None else args.scene,
            width=args.width,
            height=args.height,
            resolution=args.resolution,
            terrain_height=args.terrain_height,
            mode=args.mode,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
