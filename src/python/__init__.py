"""Python implementation of the Taichi-based height map ray caster.

This package renders terrain height maps using Taichi, with support for:
- Ray casting against a regular grid of height samples
- Bounding box culling and a row-by-row grid traversal
- Albedo, normal and depth shading
- Procedural and image-based terrain scenes

Subpackages:
    core: Ray utilities and the frame renderer
    geometry: Bounding box, grid cell and triangle intersection
    heightmap: Height sample sources and the HeightMap itself
    materials: Surface colour descriptions
    scene: Terrain scene presets
    camera: Camera models with ray generation
    preview: Output rendering and preview utilities
"""

__version__ = "0.1.0"
