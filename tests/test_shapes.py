"""Tests for spheres, triangles and bounding boxes."""

import pytest
import math
import numpy as np

from whitted.vec3 import Vec3, Point3
from whitted.ray import Ray
from whitted.materials import Material
from whitted.shapes import Sphere, Triangle, BoundingBox, EPSILON


class TestSphere:
    """Test Sphere intersection."""

    def test_hit_from_outside(self):
        sphere = Sphere(Point3(0, 0, 5), 1.0)
        hit = sphere.intersect(Ray(Point3(0, 0, 0), Vec3(0, 0, 1)))
        assert hit is not None
        assert hit.position == Point3(0, 0, 4)
        assert hit.normal == Vec3(0, 0, -1)

    def test_hit_with_unnormalized_direction(self):
        sphere = Sphere(Point3(0, 0, 5), 1.0)
        hit = sphere.intersect(Ray(Point3(0, 0, 0), Vec3(0, 0, 3)))
        assert hit.position == Point3(0, 0, 4)

    def test_miss(self):
        sphere = Sphere(Point3(0, 0, 5), 1.0)
        assert sphere.intersect(Ray(Point3(0, 0, 0), Vec3(0, 1, 0))) is None

    def test_behind_origin(self):
        sphere = Sphere(Point3(0, 0, -5), 1.0)
        assert sphere.intersect(Ray(Point3(0, 0, 0), Vec3(0, 0, 1))) is None

    def test_hit_from_inside_returns_far_root(self):
        sphere = Sphere(Point3(0, 0, 0), 2.0)
        hit = sphere.intersect(Ray(Point3(0, 0, 0), Vec3(1, 0, 0)))
        assert hit.position == Point3(2, 0, 0)
        assert hit.normal == Vec3(1, 0, 0)

    def test_ray_leaving_surface_does_not_self_hit(self):
        sphere = Sphere(Point3(0, 0, 0), 1.0)
        hit = sphere.intersect(Ray(Point3(0, 0, -1), Vec3(0, 0, -1)))
        assert hit is None

    def test_hit_carries_material(self):
        mat = Material()
        sphere = Sphere(Point3(0, 0, 5), 1.0, mat)
        hit = sphere.intersect(Ray(Point3(0, 0, 0), Vec3(0, 0, 1)))
        assert hit.material is mat
        assert sphere.material is mat


class TestTriangle:
    """Test Triangle intersection and barycentric coordinates."""

    def setup_method(self):
        self.tri = Triangle(Point3(-1, -1, 5), Point3(1, -1, 5), Point3(0, 1, 5))

    def test_face_normal_from_winding(self):
        assert self.tri.face_normal == Vec3(0, 0, 1)

    def test_hit_inside(self):
        hit = self.tri.intersect(Ray(Point3(0, 0, 0), Vec3(0, 0, 1)))
        assert hit is not None
        assert hit.position == Point3(0, 0, 5)
        assert abs(hit.normal.length() - 1.0) < 1e-9

    def test_hit_from_back_side(self):
        hit = self.tri.intersect(Ray(Point3(0, 0, 10), Vec3(0, 0, -1)))
        assert hit is not None
        assert hit.position == Point3(0, 0, 5)

    def test_miss_outside(self):
        assert self.tri.intersect(Ray(Point3(2, 2, 0), Vec3(0, 0, 1))) is None

    def test_parallel_ray(self):
        assert self.tri.intersect(Ray(Point3(0, 0, 0), Vec3(1, 0, 0))) is None

    def test_behind_origin(self):
        assert self.tri.intersect(Ray(Point3(0, 0, 6), Vec3(0, 0, 1))) is None

    def test_degenerate_triangle(self):
        tri = Triangle(Point3(0, 0, 5), Point3(1, 0, 5), Point3(2, 0, 5))
        assert tri.intersect(Ray(Point3(1, 0, 0), Vec3(0, 0, 1))) is None

    def test_barycentric_reconstructs_point(self):
        rng = np.random.default_rng(7)
        v0, v1, v2 = self.tri.vertices
        for _ in range(20):
            a, b = rng.random(2)
            if a + b > 1:
                a, b = 1 - a, 1 - b
            point = v0 * (1 - a - b) + v1 * a + v2 * b
            w0, w1, w2 = self.tri.barycentric(point)
            assert abs(w0 + w1 + w2 - 1.0) < 1e-9
            assert min(w0, w1, w2) >= -1e-9
            assert v0 * w0 + v1 * w1 + v2 * w2 == point

    def test_barycentric_at_vertices(self):
        w = self.tri.barycentric(self.tri.v0)
        assert abs(w[0] - 1.0) < 1e-9
        assert abs(w[1]) < 1e-9
        assert abs(w[2]) < 1e-9

    def test_supplied_normal_replaced_on_move(self):
        tri = Triangle(Point3(0, 0, 0), Point3(1, 0, 0), Point3(0, 1, 0), normal=Vec3(0, 0, -2))
        assert tri.normal == Vec3(0, 0, -1)
        tri.set_vertices(Point3(0, 0, 0), Point3(0, 1, 0), Point3(1, 0, 0))
        assert tri.normal == Vec3(0, 0, -1)
        tri.set_vertices(Point3(0, 0, 0), Point3(1, 0, 0), Point3(0, 1, 0))
        assert tri.normal == Vec3(0, 0, 1)


class TestBoundingBox:
    """Test BoundingBox construction and the slab test."""

    def test_from_triangle_is_tight(self):
        tri = Triangle(Point3(1, 5, -2), Point3(3, 0, 4), Point3(-1, 2, 0))
        box = BoundingBox.from_triangle(tri)
        assert box.lower == Point3(-1, 0, -2)
        assert box.upper == Point3(3, 5, 4)
        for v in tri.vertices:
            assert box.contains(v)

    def test_union_contains_both(self):
        a = BoundingBox(Point3(0, 0, 0), Point3(1, 1, 1))
        b = BoundingBox(Point3(-1, 2, 0.5), Point3(0.5, 3, 4))
        u = BoundingBox.union(a, b)
        for box in (a, b):
            assert u.contains(box.lower)
            assert u.contains(box.upper)
        assert u.lower == Point3(-1, 0, 0)
        assert u.upper == Point3(1, 3, 4)

    def test_contains_tolerance(self):
        box = BoundingBox(Point3(0, 0, 0), Point3(1, 1, 1))
        assert not box.contains(Point3(1.01, 0.5, 0.5))
        assert box.contains(Point3(1.01, 0.5, 0.5), tolerance=0.1)

    def test_longest_axis(self):
        box = BoundingBox(Point3(0, 0, 0), Point3(1, 5, 2))
        assert box.longest_axis() == 1

    def test_hit_and_miss(self):
        box = BoundingBox(Point3(-1, -1, 4), Point3(1, 1, 6))
        assert box.intersects(Ray(Point3(0, 0, 0), Vec3(0, 0, 1)))
        assert not box.intersects(Ray(Point3(0, 0, 0), Vec3(0, 1, 0)))
        assert not box.intersects(Ray(Point3(5, 0, 0), Vec3(0, 0, 1)))

    def test_axis_aligned_ray_inside_slab(self):
        box = BoundingBox(Point3(-1, -1, -1), Point3(1, 1, 1))
        # Zero X and Y components with the origin inside both slabs
        assert box.intersects(Ray(Point3(0.5, -0.5, -10), Vec3(0, 0, 1)))

    def test_axis_aligned_ray_outside_slab(self):
        box = BoundingBox(Point3(-1, -1, -1), Point3(1, 1, 1))
        assert not box.intersects(Ray(Point3(2, 0, -10), Vec3(0, 0, 1)))

    def test_reversed_ray_agrees(self):
        box = BoundingBox(Point3(-1, -1, 4), Point3(1, 1, 6))
        rng = np.random.default_rng(3)
        for _ in range(50):
            origin = Point3(*(rng.random(3) * 10 - 5))
            direction = Vec3(*(rng.random(3) * 2 - 1))
            ray = Ray(origin, direction)
            assert box.intersects(ray) == box.intersects(ray.reversed())

    def test_flat_box_is_hit(self):
        tri = Triangle(Point3(-1, 0, -1), Point3(1, 0, -1), Point3(0, 0, 1))
        box = BoundingBox.from_triangle(tri)
        assert box.extent().y == 0.0
        assert box.intersects(Ray(Point3(0, 5, 0), Vec3(0, -1, 0)))
        assert box.intersects(Ray(Point3(0.1, 5, 0.1), Vec3(0.01, -1, 0.02)))

    def test_epsilon_constant(self):
        assert EPSILON == 1e-6
