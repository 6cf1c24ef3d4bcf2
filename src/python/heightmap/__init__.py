"""Height map module: sample sources, the HeightMap engine and its results.

Components:
    source: Height sample sources (in-memory arrays and grayscale images)
    heightmap: HeightMap storage, bounding box and ray traversal
    intersection: Hit records for kernel code and Python callers

Note: heightmap is NOT imported here; HeightMap allocates Taichi fields and
therefore needs ti.init() to have run first. Import it directly:
    from src.python.heightmap.heightmap import HeightMap
"""

from .intersection import HeightMapHit, Intersection, make_heightmap_miss
from .source import ArrayHeightSource, HeightMapReader, HeightSampleSource, read_samples

__all__ = [
    "ArrayHeightSource",
    "HeightMapReader",
    "HeightSampleSource",
    "read_samples",
    "HeightMapHit",
    "Intersection",
    "make_heightmap_miss",
]
