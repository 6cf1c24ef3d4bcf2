"""Surface material attached to a height map.

The height map only stores and returns its material; it never looks inside.
The renderer reads the albedo to colour hit pixels.

Example:
    >>> from src.python.materials.material import Material
    >>> grass = Material(name="grass", albedo=(0.35, 0.55, 0.2))
    >>> grass.albedo
    (0.35, 0.55, 0.2)
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Material:
    """A named diffuse colour.

    Attributes:
        name: Label used in logs and scene descriptions.
        albedo: Surface colour (RGB, each component in [0, 1]).

    Raises:
        ValueError: If albedo does not have three components in [0, 1].
    """

    name: str = "default"
    albedo: tuple[float, float, float] = (0.73, 0.73, 0.73)

    def __post_init__(self) -> None:
        if len(self.albedo) != 3:
            raise ValueError(f"Albedo must have 3 components, got {len(self.albedo)}")
        if not all(0.0 <= c <= 1.0 for c in self.albedo):
            raise ValueError(f"Albedo components must be in [0, 1], got {self.albedo}")
        object.__setattr__(self, "albedo", tuple(float(c) for c in self.albedo))


# Light gray
DEFAULT_MATERIAL = Material()
