"""
Surface materials for Whitted shading.

A material carries the Phong coefficients (ambient, diffuse, specular colors
and a shininess exponent) plus the weights of the recursive specular
contributions: reflectivity and transmissivity, and the refractive index used
for Snell's law. Materials are immutable and shared by reference between
every primitive that uses them.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .vec3 import Color


def _black() -> Color:
    return Color(0.0, 0.0, 0.0)


@dataclass(frozen=True, eq=False)
class Material:
    """Phong shading parameters with reflection and refraction weights.

    Attributes:
        ambient_color: Multiplied with the scene's ambient light
        diffuse_color: Lambertian term
        specular_color: Phong highlight color
        shininess: Phong exponent
        reflectivity: Weight of the mirror-reflection ray, in [0, 1]
        transmissivity: Weight of the refraction ray, in [0, 1]
        refractive_index: Index of refraction of the medium (> 0)

    Reflectivity and transmissivity are independent weights; their sum may
    exceed one.
    """
    ambient_color: Color = field(default_factory=_black)
    diffuse_color: Color = field(default_factory=_black)
    specular_color: Color = field(default_factory=_black)
    shininess: float = 1.0
    reflectivity: float = 0.0
    transmissivity: float = 0.0
    refractive_index: float = 1.0

    def __post_init__(self):
        if self.shininess < 0:
            raise ValueError(f"shininess must be >= 0, got {self.shininess}")
        if not 0.0 <= self.reflectivity <= 1.0:
            raise ValueError(f"reflectivity must be in [0, 1], got {self.reflectivity}")
        if not 0.0 <= self.transmissivity <= 1.0:
            raise ValueError(f"transmissivity must be in [0, 1], got {self.transmissivity}")
        if self.refractive_index <= 0:
            raise ValueError(f"refractive_index must be > 0, got {self.refractive_index}")

    @classmethod
    def diffuse(cls, color: Color, ambient: float = 0.1) -> Material:
        """Plain matte material whose ambient term is a fraction of its color."""
        return cls(ambient_color=color * ambient, diffuse_color=color)

    @classmethod
    def mirror(cls, reflectivity: float = 1.0) -> Material:
        return cls(reflectivity=reflectivity)

    @classmethod
    def glass(cls, refractive_index: float = 1.5, transmissivity: float = 1.0,
              reflectivity: float = 0.0) -> Material:
        return cls(
            specular_color=Color(1.0, 1.0, 1.0),
            shininess=100.0,
            reflectivity=reflectivity,
            transmissivity=transmissivity,
            refractive_index=refractive_index
        )
