"""
Camera module for generating primary rays.

Supports:
- Arbitrary placement via a Transform (+Z forward, +X right, +Y up)
- Pinhole projection
- Depth of field (thin-lens aperture sampling toward a focal point)
"""

from __future__ import annotations
import math
from typing import Optional, Tuple

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray
from .transform import Transform
from .shapes import SceneEntity, RayHit


def random_point_on_disk(radius: float, rng: np.random.Generator) -> Tuple[float, float]:
    """Uniform point on a disk of `radius` using the polar method."""
    r = math.sqrt(rng.random()) * radius
    theta = rng.random() * 2.0 * math.pi
    return r * math.cos(theta), r * math.sin(theta)


class Camera(SceneEntity):
    """A camera with optional depth of field.

    An aperture radius of zero gives a pinhole camera. With a positive
    radius, rays start from a random point on the lens disk and converge on
    the focal point `focal_length` units along the view direction.
    """

    def __init__(
        self,
        transform: Optional[Transform] = None,
        aperture_radius: float = 0.0,
        focal_length: float = 1.0
    ):
        self.transform = transform if transform is not None else Transform.identity()
        self.aperture_radius = aperture_radius
        self.focal_length = focal_length

    @property
    def aperture_radius(self) -> float:
        return self._aperture_radius

    @aperture_radius.setter
    def aperture_radius(self, value: float) -> None:
        if value < 0:
            raise ValueError(f"aperture_radius must be >= 0, got {value}")
        self._aperture_radius = value

    @property
    def focal_length(self) -> float:
        return self._focal_length

    @focal_length.setter
    def focal_length(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"focal_length must be > 0, got {value}")
        self._focal_length = value

    @property
    def position(self) -> Point3:
        return self.transform.position

    def basis(self) -> Tuple[Vec3, Vec3, Vec3]:
        """World-space (right, up, forward) axes of the camera."""
        rotation = self.transform.rotation
        return (
            rotation.rotate(Vec3(1, 0, 0)),
            rotation.rotate(Vec3(0, 1, 0)),
            rotation.rotate(Vec3(0, 0, 1))
        )

    def generate_ray(self, direction: Vec3, rng: Optional[np.random.Generator] = None) -> Ray:
        """Generate a primary ray along `direction`.

        Args:
            direction: World-space view direction (need not be normalized)
            rng: Generator for aperture sampling; callers rendering in
                parallel must pass one generator per task

        Returns:
            A ray from the camera (or a lens sample) through the focal point
        """
        origin = self.transform.position
        direction = direction.normalize()

        if self.aperture_radius > 0.0:
            if rng is None:
                rng = np.random.default_rng()
            focal_point = origin + direction * self.focal_length
            dx, dy = random_point_on_disk(self.aperture_radius, rng)
            lens_offset = self.transform.rotation.rotate(Vec3(dx, dy, 0.0))
            aperture_point = origin + lens_offset
            return Ray(aperture_point, (focal_point - aperture_point).normalize())

        return Ray(origin, direction)

    @property
    def material(self):
        return None

    def intersect(self, ray: Ray) -> Optional[RayHit]:
        """Cameras are never hit."""
        return None

    def __repr__(self) -> str:
        return (
            f"Camera(position={self.position}, aperture_radius={self.aperture_radius}, "
            f"focal_length={self.focal_length})"
        )
