"""
Ray class for representing rays in 3D space.

A ray is defined by an origin point and a direction vector.
Ray(t) = origin + t * direction
"""

from __future__ import annotations
from .vec3 import Vec3, Point3


class Ray:
    """A half-line with origin and direction.

    Producers are not required to normalize the direction; anything that
    depends on unit length normalizes it itself.
    """

    __slots__ = ('origin', 'direction')

    def __init__(self, origin: Point3, direction: Vec3):
        self.origin = origin
        self.direction = direction

    def at(self, t: float) -> Point3:
        """Get the point along the ray at parameter t."""
        return self.origin + self.direction * t

    def reversed(self) -> Ray:
        """Same line, opposite direction."""
        return Ray(self.origin, -self.direction)

    def __repr__(self) -> str:
        return f"Ray(origin={self.origin}, direction={self.direction})"
