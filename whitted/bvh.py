"""
Bounding Volume Hierarchy (BVH) over triangle meshes.

Each node holds a bounding box and either:
- a single triangle (leaf node)
- two child nodes (interior node)

The tree is built once per mesh load or animation step and rebuilt
wholesale whenever the triangles move; nodes are never patched.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional

from .ray import Ray
from .shapes import BoundingBox, RayHit, Triangle

logger = logging.getLogger(__name__)


class SplitPolicy(Enum):
    """How a node orders its triangles before splitting them in half.

    FIRST_VERTEX_X sorts on the X coordinate of each triangle's first
    vertex whatever the mesh extent is. It is cheap but can produce loose,
    overlapping boxes for meshes that are long in Y or Z; it stays the
    default so renders match meshes built before LONGEST_AXIS existed.

    LONGEST_AXIS sorts on triangle centroids along the longest axis of the
    node's box.
    """
    FIRST_VERTEX_X = 'first_vertex_x'
    LONGEST_AXIS = 'longest_axis'


def _sort_key(policy: SplitPolicy, bbox: BoundingBox) -> Callable[[Triangle], float]:
    if policy is SplitPolicy.LONGEST_AXIS:
        axis = bbox.longest_axis()
        return lambda tri: tri.centroid()[axis]
    return lambda tri: tri.v0.x


def bounds_of(triangles: Iterable[Triangle]) -> Optional[BoundingBox]:
    """Union of the per-triangle boxes, or None for no triangles."""
    bounds = None
    for tri in triangles:
        box = BoundingBox.from_triangle(tri)
        bounds = box if bounds is None else BoundingBox.union(bounds, box)
    return bounds


class BVHNode:
    """A node in the Bounding Volume Hierarchy tree.

    Exactly one of `triangle` (leaf) or `left`/`right` (interior) is set,
    except for the empty tree which has neither and never reports a hit.
    """

    def __init__(
        self,
        triangles: List[Triangle],
        split_policy: SplitPolicy = SplitPolicy.FIRST_VERTEX_X
    ):
        self.triangle: Optional[Triangle] = None
        self.left: Optional[BVHNode] = None
        self.right: Optional[BVHNode] = None
        self.bbox: Optional[BoundingBox] = None

        if len(triangles) == 0:
            return

        if len(triangles) == 1:
            self.triangle = triangles[0]
            self.bbox = BoundingBox.from_triangle(self.triangle)
            return

        self.bbox = bounds_of(triangles)

        ordered = sorted(triangles, key=_sort_key(split_policy, self.bbox))
        mid = len(ordered) // 2

        self.left = BVHNode(ordered[:mid], split_policy)
        self.right = BVHNode(ordered[mid:], split_policy)

    @property
    def is_leaf(self) -> bool:
        return self.triangle is not None

    def intersect(self, ray: Ray) -> Optional[RayHit]:
        """Nearest triangle hit below this node, by squared distance from the ray origin."""
        # Ray misses the box: skip the whole subtree
        if self.bbox is None or not self.bbox.intersects(ray):
            return None

        if self.triangle is not None:
            return self.triangle.intersect(ray)

        left_hit = self.left.intersect(ray)
        right_hit = self.right.intersect(ray)

        if left_hit is None:
            return right_hit
        if right_hit is None:
            return left_hit

        dist_left = left_hit.distance_squared(ray.origin)
        dist_right = right_hit.distance_squared(ray.origin)
        return left_hit if dist_left < dist_right else right_hit

    @property
    def material(self):
        """Material of the leftmost leaf.

        Meshes normally share a single material, so this is a representative
        rather than the material of any particular hit.
        """
        if self.triangle is not None:
            return self.triangle.material
        if self.left is not None:
            return self.left.material
        if self.right is not None:
            return self.right.material
        return None

    def depth(self) -> int:
        if self.left is None and self.right is None:
            return 1
        left = self.left.depth() if self.left else 0
        right = self.right.depth() if self.right else 0
        return 1 + max(left, right)

    def leaf_count(self) -> int:
        if self.triangle is not None:
            return 1
        count = 0
        if self.left is not None:
            count += self.left.leaf_count()
        if self.right is not None:
            count += self.right.leaf_count()
        return count

    def __len__(self) -> int:
        return self.leaf_count()


def build_bvh(
    triangles: Iterable[Triangle],
    split_policy: SplitPolicy = SplitPolicy.FIRST_VERTEX_X
) -> BVHNode:
    """Build a BVH over the given triangles.

    Args:
        triangles: Triangles to accelerate (the input list is not reordered)
        split_policy: Ordering used before each midpoint split

    Returns:
        The root node
    """
    triangles = list(triangles)
    root = BVHNode(triangles, split_policy)
    logger.debug(
        "Built BVH over %d triangles (depth %d, policy %s)",
        len(triangles), root.depth(), split_policy.value
    )
    return root
