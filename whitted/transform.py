"""
Rotations and rigid transforms.

Quaternions rotate vectors; a Transform bundles position, rotation and
uniform scale and is used to place cameras and OBJ meshes in the world.
"""

from __future__ import annotations
import math

from .vec3 import Vec3, Point3


class Quaternion:
    """A rotation quaternion (w + xi + yj + zk)."""

    __slots__ = ('w', 'x', 'y', 'z')

    def __init__(self, w: float = 1.0, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self.w = w
        self.x = x
        self.y = y
        self.z = z

    @classmethod
    def identity(cls) -> Quaternion:
        return cls(1.0, 0.0, 0.0, 0.0)

    @classmethod
    def axis_angle(cls, axis: Vec3, angle: float) -> Quaternion:
        """Rotation of `angle` radians about `axis` (right-hand rule)."""
        axis = axis.normalize()
        half = angle / 2.0
        s = math.sin(half)
        return cls(math.cos(half), axis.x * s, axis.y * s, axis.z * s)

    @classmethod
    def from_euler(cls, x: float, y: float, z: float) -> Quaternion:
        """Build from euler angles in radians, applied Z then X then Y."""
        qx = cls.axis_angle(Vec3(1, 0, 0), x)
        qy = cls.axis_angle(Vec3(0, 1, 0), y)
        qz = cls.axis_angle(Vec3(0, 0, 1), z)
        return qy * qx * qz

    def __mul__(self, other: Quaternion) -> Quaternion:
        """Hamilton product; (a * b) rotates by b first, then a."""
        w1, x1, y1, z1 = self.w, self.x, self.y, self.z
        w2, x2, y2, z2 = other.w, other.x, other.y, other.z
        return Quaternion(
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2
        )

    def norm(self) -> float:
        return math.sqrt(self.w * self.w + self.x * self.x + self.y * self.y + self.z * self.z)

    def normalize(self) -> Quaternion:
        n = self.norm()
        if n == 0:
            return Quaternion.identity()
        return Quaternion(self.w / n, self.x / n, self.y / n, self.z / n)

    def conjugate(self) -> Quaternion:
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def rotate(self, v: Vec3) -> Vec3:
        """Rotate a vector: v' = v + 2w(q x v) + 2 q x (q x v)."""
        q = Vec3(self.x, self.y, self.z)
        t = q.cross(v) * 2.0
        return v + t * self.w + q.cross(t)

    def __repr__(self) -> str:
        return f"Quaternion({self.w:.4f}, {self.x:.4f}, {self.y:.4f}, {self.z:.4f})"


class Transform:
    """Position, rotation and uniform scale of an object in the world."""

    def __init__(
        self,
        position: Point3 = None,
        rotation: Quaternion = None,
        scale: float = 1.0
    ):
        self.position = position if position is not None else Point3(0, 0, 0)
        self.rotation = rotation if rotation is not None else Quaternion.identity()
        self.scale = scale

    @classmethod
    def identity(cls) -> Transform:
        return cls()

    def apply(self, point: Point3) -> Point3:
        """Map a point from local to world space: scale, rotate, translate."""
        return self.rotation.rotate(point * self.scale) + self.position

    def translated(self, offset: Vec3) -> Transform:
        """A copy moved by `offset`."""
        return Transform(self.position + offset, self.rotation, self.scale)

    def __repr__(self) -> str:
        return f"Transform(position={self.position}, rotation={self.rotation}, scale={self.scale})"
