"""Scene module for terrain test scenes.

Components:
    terrain_scenes: Procedural height grids, named presets and a factory
        building a HeightMap plus a camera framing it

Note: terrain_scenes imports the camera, which keeps its state in Taichi
fields, so call ti.init() before importing this package.
"""

from .terrain_scenes import (
    IMAGE_TERRAIN_MATERIAL,
    SCENE_PRESETS,
    TerrainSceneParams,
    create_terrain_scene,
    flat_samples,
    hills_samples,
    pyramid_samples,
    ramp_samples,
    terrain_camera,
)

__all__ = [
    "IMAGE_TERRAIN_MATERIAL",
    "SCENE_PRESETS",
    "TerrainSceneParams",
    "create_terrain_scene",
    "flat_samples",
    "hills_samples",
    "pyramid_samples",
    "ramp_samples",
    "terrain_camera",
]
