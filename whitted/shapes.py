"""
Geometric primitives and the scene entity capability.

Every renderable implements SceneEntity: it answers `intersect(ray)` with a
RayHit or None, and exposes the `material` used to shade it. The set of
implementors is closed: Sphere and Triangle here, Mesh (BVH-backed),
AreaLight, and Camera (which never reports a hit).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, TYPE_CHECKING
import math

from .vec3 import Vec3, Point3
from .ray import Ray

if TYPE_CHECKING:
    from .materials import Material


# Self-intersection and parallel-ray tolerance shared by all primitives.
EPSILON = 1e-6

TexCoord = Tuple[float, float]


@dataclass
class RayHit:
    """Stores information about a ray-object intersection.

    Attributes:
        position: The intersection point in world space
        normal: Unit surface normal (outward for spheres, face winding for triangles)
        incident: Direction of the ray that produced the hit
        material: The material at the hit point
    """
    position: Point3
    normal: Vec3
    incident: Vec3
    material: Optional[Material] = None

    def distance_squared(self, origin: Point3) -> float:
        """Squared distance from `origin`, used for nearest-hit ordering."""
        return (self.position - origin).length_squared()


class SceneEntity(ABC):
    """Capability shared by everything the renderer can intersect."""

    @abstractmethod
    def intersect(self, ray: Ray) -> Optional[RayHit]:
        """Return the nearest hit in front of the ray origin, or None."""

    @property
    @abstractmethod
    def material(self) -> Optional[Material]:
        """Material used to shade hits on this entity."""

    def prepare(self) -> None:
        """Called serially before every render pass; rebuild cached state here."""


class Sphere(SceneEntity):
    """A sphere defined by center and radius."""

    def __init__(self, center: Point3, radius: float, material: Optional[Material] = None):
        self.center = center
        self.radius = radius
        self._material = material

    @property
    def material(self) -> Optional[Material]:
        return self._material

    def intersect(self, ray: Ray) -> Optional[RayHit]:
        """Ray-sphere intersection using the quadratic formula.

        |O + tD - C|^2 = r^2 expands to a t^2 + b t + c = 0 with
        a = D.D, b = 2 D.(O - C), c = |O - C|^2 - r^2.
        The smallest root beyond EPSILON wins, so rays leaving the surface
        they start on do not hit it again.
        """
        oc = ray.origin - self.center
        a = ray.direction.length_squared()
        if a == 0:
            return None
        b = 2.0 * ray.direction.dot(oc)
        c = oc.length_squared() - self.radius * self.radius

        discriminant = b * b - 4.0 * a * c
        if discriminant < 0:
            return None

        sqrtd = math.sqrt(discriminant)
        t1 = (-b - sqrtd) / (2.0 * a)
        t2 = (-b + sqrtd) / (2.0 * a)

        if t1 > EPSILON:
            t = t1
        elif t2 > EPSILON:
            t = t2
        else:
            return None

        position = ray.at(t)
        normal = (position - self.center) / self.radius

        return RayHit(position, normal.normalize(), ray.direction, self._material)

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class Triangle(SceneEntity):
    """A triangle defined by three vertices.

    `normal` starts as the supplied normal (for example the averaged vertex
    normals of an OBJ face) or the geometric one, and is recomputed from the
    winding whenever the vertices move. Hits always report the geometric
    face normal (v1 - v0) x (v2 - v0), normalized.
    """

    def __init__(
        self,
        v0: Point3,
        v1: Point3,
        v2: Point3,
        material: Optional[Material] = None,
        normal: Optional[Vec3] = None,
        tex_coords: Optional[Sequence[TexCoord]] = None
    ):
        self._material = material
        self.tex_coords = tuple(tex_coords) if tex_coords is not None else None
        self.set_vertices(v0, v1, v2)
        if normal is not None:
            self.normal = normal.normalize()

    @property
    def material(self) -> Optional[Material]:
        return self._material

    def set_vertices(self, v0: Point3, v1: Point3, v2: Point3) -> None:
        """Move the triangle and recompute its face normal."""
        self.v0 = v0
        self.v1 = v1
        self.v2 = v2
        self._face_normal = (v1 - v0).cross(v2 - v0)
        self._area_sq = self._face_normal.length_squared()
        self._unit_normal = self._face_normal.normalize()
        self.normal = self._unit_normal

    @property
    def vertices(self) -> Tuple[Point3, Point3, Point3]:
        return (self.v0, self.v1, self.v2)

    @property
    def face_normal(self) -> Vec3:
        """Unit geometric normal from the vertex winding."""
        return self._unit_normal

    def centroid(self) -> Point3:
        return (self.v0 + self.v1 + self.v2) / 3.0

    def barycentric(self, point: Point3) -> Tuple[float, float, float]:
        """Signed sub-triangle area ratios (w0, w1, w2) of `point`.

        Each weight is the area of the sub-triangle opposite its vertex,
        signed against the face normal and divided by the full area, so
        point == w0*v0 + w1*v1 + w2*v2 for any point in the plane.
        """
        n = self._face_normal
        if self._area_sq == 0:
            return (math.nan, math.nan, math.nan)
        p0 = self.v0 - point
        p1 = self.v1 - point
        p2 = self.v2 - point
        w0 = n.dot(p1.cross(p2)) / self._area_sq
        w1 = n.dot(p2.cross(p0)) / self._area_sq
        w2 = n.dot(p0.cross(p1)) / self._area_sq
        return (w0, w1, w2)

    def intersect(self, ray: Ray) -> Optional[RayHit]:
        """Plane intersection followed by a barycentric inside/outside test."""
        if self._area_sq == 0:
            return None

        n = self._unit_normal
        direction = ray.direction.normalize()
        denom = n.dot(direction)
        # Ray parallel to the plane
        if abs(denom) < EPSILON:
            return None

        t = n.dot(self.v0 - ray.origin) / denom
        if t < EPSILON:
            return None

        position = ray.origin + direction * t

        w0, w1, w2 = self.barycentric(position)
        if w0 < -EPSILON or w1 < -EPSILON or w2 < -EPSILON:
            return None
        if abs(w0 + w1 + w2 - 1.0) > EPSILON:
            return None

        return RayHit(position, n, ray.direction, self._material)

    def __repr__(self) -> str:
        return f"Triangle(v0={self.v0}, v1={self.v1}, v2={self.v2})"


class BoundingBox:
    """Axis-aligned bounding box used by the BVH."""

    __slots__ = ('lower', 'upper')

    def __init__(self, lower: Point3, upper: Point3):
        """Create an AABB from corner points.

        Args:
            lower: Corner with smallest x, y, z values
            upper: Corner with largest x, y, z values
        """
        self.lower = lower
        self.upper = upper

    @classmethod
    def from_triangle(cls, tri: Triangle) -> BoundingBox:
        """Tight box around the triangle's three vertices."""
        return cls(
            tri.v0.min(tri.v1).min(tri.v2),
            tri.v0.max(tri.v1).max(tri.v2)
        )

    @staticmethod
    def union(a: BoundingBox, b: BoundingBox) -> BoundingBox:
        """Smallest box containing both inputs."""
        return BoundingBox(a.lower.min(b.lower), a.upper.max(b.upper))

    def contains(self, point: Point3, tolerance: float = 0.0) -> bool:
        for i in range(3):
            if point[i] < self.lower[i] - tolerance or point[i] > self.upper[i] + tolerance:
                return False
        return True

    def extent(self) -> Vec3:
        return self.upper - self.lower

    def longest_axis(self) -> int:
        size = self.extent()
        if size.x >= size.y and size.x >= size.z:
            return 0
        return 1 if size.y >= size.z else 2

    def intersects(self, ray: Ray) -> bool:
        """Slab test against the infinite line through the ray.

        A zero direction component constrains nothing when the origin is
        inside that axis' slab and rejects the ray when it is outside, so no
        infinities or NaNs enter the interval. The interval is empty only
        when t_max < t_min, which keeps zero-thickness boxes (axis-aligned
        triangles) hittable.
        """
        t_min = -math.inf
        t_max = math.inf

        for i in range(3):
            origin = ray.origin[i]
            d = ray.direction[i]
            lo = self.lower[i]
            hi = self.upper[i]

            if d == 0.0:
                if origin < lo or origin > hi:
                    return False
                continue

            inv_d = 1.0 / d
            t0 = (lo - origin) * inv_d
            t1 = (hi - origin) * inv_d

            if inv_d < 0.0:
                t0, t1 = t1, t0

            t_min = max(t_min, t0)
            t_max = min(t_max, t1)

            # Strict so flat boxes around axis-aligned triangles, where t_max == t_min, still hit
            if t_max < t_min:
                return False

        return True

    def __repr__(self) -> str:
        return f"BoundingBox(lower={self.lower}, upper={self.upper})"
