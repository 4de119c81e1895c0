"""
Light sources for the ray tracer.

Implements:
- Point lights (used for direct Phong illumination and hard shadows)
- Rectangular area lights (visible emitters that can be point-sampled)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional
import math

import numpy as np

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .shapes import SceneEntity, RayHit, EPSILON
from .materials import Material


@dataclass(frozen=True, eq=False)
class PointLight:
    """An infinitesimal light source producing hard shadows."""
    position: Point3
    color: Color


def phong_lighting(
    material: Material,
    hit: RayHit,
    light: PointLight,
    eye: Point3
) -> Color:
    """Diffuse plus specular contribution of one unoccluded point light.

    diffuse  = kd * light * max(0, N.L)
    specular = ks * light * max(0, R.V)^shininess

    where L points to the light, R is L mirrored about N and V points to
    the eye (the camera position).
    """
    normal = hit.normal.normalize()
    to_light = (light.position - hit.position).normalize()
    reflected = (normal * (2.0 * to_light.dot(normal)) - to_light).normalize()
    to_eye = (eye - hit.position).normalize()

    diffuse = material.diffuse_color * light.color * max(0.0, normal.dot(to_light))
    specular = (
        material.specular_color * light.color
        * math.pow(max(0.0, reflected.dot(to_eye)), material.shininess)
    )
    return diffuse + specular


class AreaLight(SceneEntity):
    """A rectangular emitter.

    The rectangle is centred on `position`, faces along `normal`, and spans
    `width` along right = up x normal and `height` along `up`. It is
    intersected like any other entity and shaded with its own material.
    """

    def __init__(
        self,
        position: Point3,
        normal: Vec3,
        up: Vec3,
        width: float,
        height: float,
        color: Color,
        material: Optional[Material] = None
    ):
        self.position = position
        self.normal = normal.normalize()
        self.up = up.normalize()
        self.right = self.up.cross(self.normal).normalize()
        self.width = width
        self.height = height
        self.color = color
        if material is None:
            material = Material(ambient_color=color, diffuse_color=color)
        self._material = material

    @property
    def material(self) -> Material:
        return self._material

    def sample_points(self, count: int, rng: Optional[np.random.Generator] = None) -> List[Point3]:
        """Uniformly distributed points on the rectangle."""
        if rng is None:
            rng = np.random.default_rng()
        offsets = rng.random((count, 2)) - 0.5
        return [
            self.position + self.right * (u * self.width) + self.up * (v * self.height)
            for u, v in offsets
        ]

    def intersect(self, ray: Ray) -> Optional[RayHit]:
        denom = ray.direction.dot(self.normal)
        # Parallel to the light plane
        if abs(denom) < EPSILON:
            return None

        t = self.normal.dot(self.position - ray.origin) / denom
        if t < EPSILON:
            return None

        point = ray.at(t)
        to_point = point - self.position

        if abs(to_point.dot(self.right)) > self.width / 2 or abs(to_point.dot(self.up)) > self.height / 2:
            return None

        return RayHit(point, self.normal, ray.direction, self._material)

    def __repr__(self) -> str:
        return f"AreaLight(position={self.position}, size={self.width}x{self.height})"
