"""Tests for BVH acceleration structure."""

import pytest
import numpy as np

from whitted.vec3 import Vec3, Point3
from whitted.ray import Ray
from whitted.materials import Material
from whitted.shapes import Triangle, BoundingBox
from whitted.bvh import BVHNode, SplitPolicy, build_bvh, bounds_of


def random_triangles(count, seed=0, material=None):
    rng = np.random.default_rng(seed)
    triangles = []
    for _ in range(count):
        center = rng.random(3) * 10 - 5
        v0, v1, v2 = (Point3(*(center + rng.random(3) - 0.5)) for _ in range(3))
        triangles.append(Triangle(v0, v1, v2, material))
    return triangles


def brute_force(triangles, ray):
    best = None
    best_dist = float('inf')
    for tri in triangles:
        hit = tri.intersect(ray)
        if hit is not None:
            dist = hit.distance_squared(ray.origin)
            if dist < best_dist:
                best, best_dist = hit, dist
    return best


def check_structure(node):
    """Leaf XOR interior, and every box contains its children's boxes."""
    if node.is_leaf:
        assert node.left is None and node.right is None
        tri_box = BoundingBox.from_triangle(node.triangle)
        assert node.bbox.contains(tri_box.lower, 1e-9)
        assert node.bbox.contains(tri_box.upper, 1e-9)
        return
    assert node.left is not None and node.right is not None
    for child in (node.left, node.right):
        assert node.bbox.contains(child.bbox.lower, 1e-9)
        assert node.bbox.contains(child.bbox.upper, 1e-9)
        check_structure(child)


class TestBVHConstruction:
    """Test BVH building."""

    def test_empty(self):
        root = build_bvh([])
        assert root.bbox is None
        assert root.intersect(Ray(Point3(0, 0, 0), Vec3(0, 0, 1))) is None
        assert root.material is None
        assert len(root) == 0

    def test_single_triangle_is_leaf(self):
        tri = random_triangles(1)[0]
        root = build_bvh([tri])
        assert root.is_leaf
        assert root.triangle is tri
        assert root.depth() == 1

    def test_leaf_count_matches_input(self):
        triangles = random_triangles(37)
        root = build_bvh(triangles)
        assert len(root) == 37

    @pytest.mark.parametrize("policy", list(SplitPolicy))
    def test_structure(self, policy):
        check_structure(build_bvh(random_triangles(25, seed=1), policy))

    def test_balanced_depth(self):
        root = build_bvh(random_triangles(64, seed=2))
        assert root.depth() == 7

    def test_root_bounds_are_minimal(self):
        triangles = random_triangles(10, seed=4)
        root = build_bvh(triangles)
        expected = bounds_of(triangles)
        assert root.bbox.lower == expected.lower
        assert root.bbox.upper == expected.upper

    def test_input_not_reordered(self):
        triangles = random_triangles(10, seed=5)
        before = list(triangles)
        build_bvh(triangles)
        assert all(a is b for a, b in zip(before, triangles))

    def test_material_from_leftmost_leaf(self):
        mat = Material()
        root = BVHNode(random_triangles(8, material=mat))
        assert root.material is mat


class TestBVHIntersection:
    """The tree must agree with a linear scan."""

    @pytest.mark.parametrize("policy", list(SplitPolicy))
    def test_matches_brute_force(self, policy):
        triangles = random_triangles(60, seed=11)
        root = build_bvh(triangles, policy)
        rng = np.random.default_rng(12)

        for _ in range(200):
            origin = Point3(*(rng.random(3) * 20 - 10))
            target = Point3(*(rng.random(3) * 8 - 4))
            ray = Ray(origin, (target - origin).normalize())

            expected = brute_force(triangles, ray)
            actual = root.intersect(ray)

            if expected is None:
                assert actual is None
            else:
                assert actual is not None
                assert abs(
                    actual.distance_squared(origin) - expected.distance_squared(origin)
                ) < 1e-9

    def test_axis_aligned_triangles(self):
        # Floor made of two triangles lying in y = 0
        floor = [
            Triangle(Point3(-5, 0, -5), Point3(-5, 0, 5), Point3(5, 0, -5)),
            Triangle(Point3(5, 0, -5), Point3(-5, 0, 5), Point3(5, 0, 5)),
        ]
        root = build_bvh(floor)
        hit = root.intersect(Ray(Point3(1, 3, 2), Vec3(0, -1, 0)))
        assert hit is not None
        assert hit.position == Point3(1, 0, 2)

    def test_miss_outside_bounds(self):
        root = build_bvh(random_triangles(20))
        assert root.intersect(Ray(Point3(100, 100, 100), Vec3(1, 0, 0))) is None
