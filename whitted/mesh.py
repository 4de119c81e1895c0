"""
Triangle mesh entity backed by a BVH.

A Mesh owns its triangles and the BVH built over them. Any mutation of the
triangles marks the tree dirty; the tree is rebuilt from scratch in
`prepare()`, which the scene calls serially before each render pass.
"""

from __future__ import annotations
import logging
from typing import Iterable, List, Optional

from .vec3 import Vec3
from .ray import Ray
from .transform import Quaternion, Transform
from .shapes import SceneEntity, RayHit, Triangle, BoundingBox
from .materials import Material
from .bvh import BVHNode, SplitPolicy, build_bvh, bounds_of

logger = logging.getLogger(__name__)


class Mesh(SceneEntity):
    """A collection of triangles sharing one material."""

    def __init__(
        self,
        triangles: Iterable[Triangle],
        material: Optional[Material] = None,
        transform: Optional[Transform] = None,
        split_policy: SplitPolicy = SplitPolicy.FIRST_VERTEX_X,
        name: str = 'mesh'
    ):
        """Create a mesh.

        Args:
            triangles: Triangles already placed in world space
            material: Material reported for the mesh (defaults to the BVH's representative)
            transform: World placement; its position is the rotation pivot
            split_policy: BVH split ordering
            name: Label used in logs
        """
        self.triangles: List[Triangle] = list(triangles)
        self._material = material
        self.transform = transform if transform is not None else Transform.identity()
        self.split_policy = split_policy
        self.name = name
        self._bvh: BVHNode = build_bvh(self.triangles, split_policy)
        self._dirty = False

    @property
    def material(self) -> Optional[Material]:
        if self._material is not None:
            return self._material
        return self._bvh.material

    @property
    def bvh(self) -> BVHNode:
        return self._bvh

    @property
    def needs_rebuild(self) -> bool:
        return self._dirty

    def invalidate(self) -> None:
        """Flag the BVH as stale after the triangles were changed."""
        self._dirty = True

    def rebuild(self) -> None:
        self._bvh = build_bvh(self.triangles, self.split_policy)
        self._dirty = False
        logger.debug("Rebuilt BVH for %s (%d triangles)", self.name, len(self.triangles))

    def prepare(self) -> None:
        if self._dirty:
            self.rebuild()

    def intersect(self, ray: Ray) -> Optional[RayHit]:
        """Query the current BVH; call prepare() first after moving triangles."""
        return self._bvh.intersect(ray)

    def apply_transform(self, translation: Vec3, rotation: Quaternion) -> None:
        """Translate every vertex, then rotate it about the mesh pivot.

        The pivot is the mesh position after the translation. Face normals
        are recomputed and the BVH is marked for rebuilding.
        """
        self.transform = self.transform.translated(translation)
        pivot = self.transform.position

        for tri in self.triangles:
            moved = [v + translation for v in tri.vertices]
            v0, v1, v2 = (rotation.rotate(v - pivot) + pivot for v in moved)
            tri.set_vertices(v0, v1, v2)

        self.invalidate()

    def bounding_box(self) -> Optional[BoundingBox]:
        if self._dirty:
            return bounds_of(self.triangles)
        return self._bvh.bbox

    def __len__(self) -> int:
        return len(self.triangles)

    def __repr__(self) -> str:
        return f"Mesh(name={self.name!r}, triangles={len(self.triangles)})"
