"""Materials module.

Components:
    material: Material dataclass (a named albedo) and the default material

A height map carries one material as an opaque handle; only the renderer
interprets it.
"""

from .material import DEFAULT_MATERIAL, Material

__all__ = ["Material", "DEFAULT_MATERIAL"]
