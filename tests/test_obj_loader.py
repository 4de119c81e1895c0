"""Tests for OBJ loading."""

import pytest
import math

from whitted.vec3 import Vec3, Point3
from whitted.ray import Ray
from whitted.transform import Quaternion, Transform
from whitted.materials import Material
from whitted.bvh import SplitPolicy
from whitted.mesh import Mesh
from whitted.obj_loader import OBJLoader, load_obj, load_obj_model, get_mesh_stats


QUAD_OBJ = """\
# unit quad in the XY plane
v -1 -1 0
v 1 -1 0
v 1 1 0
v -1 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 1
f 1/1/1 2/2/1 3/3/1 4/4/1
"""


def write_obj(tmp_path, content, name="model.obj"):
    path = tmp_path / name
    path.write_text(content)
    return path


class TestOBJParsing:
    """Test face and attribute parsing."""

    def test_quad_is_fan_triangulated(self, tmp_path):
        triangles = load_obj(write_obj(tmp_path, QUAD_OBJ))
        assert len(triangles) == 2
        t0, t1 = triangles
        assert t0.vertices == (Point3(-1, -1, 0), Point3(1, -1, 0), Point3(1, 1, 0))
        assert t1.vertices == (Point3(-1, -1, 0), Point3(1, 1, 0), Point3(-1, 1, 0))

    def test_normals_and_tex_coords(self, tmp_path):
        triangles = load_obj(write_obj(tmp_path, QUAD_OBJ))
        assert triangles[0].normal == Vec3(0, 0, 1)
        assert triangles[0].tex_coords == ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0))

    def test_position_only_faces(self, tmp_path):
        content = "v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n"
        triangles = load_obj(write_obj(tmp_path, content))
        assert len(triangles) == 1
        assert triangles[0].tex_coords is None

    def test_vertex_normal_only_faces(self, tmp_path):
        content = "v 0 0 0\nv 1 0 0\nv 0 1 0\nvn 0 0 -1\nf 1//1 2//1 3//1\n"
        tri = load_obj(write_obj(tmp_path, content))[0]
        assert tri.normal == Vec3(0, 0, -1)
        assert tri.tex_coords is None

    def test_negative_indices(self, tmp_path):
        content = "v 0 0 0\nv 1 0 0\nv 0 1 0\nf -3 -2 -1\n"
        tri = load_obj(write_obj(tmp_path, content))[0]
        assert tri.vertices == (Point3(0, 0, 0), Point3(1, 0, 0), Point3(0, 1, 0))

    def test_material_assigned(self, tmp_path):
        mat = Material()
        triangles = load_obj(write_obj(tmp_path, QUAD_OBJ), material=mat)
        assert all(t.material is mat for t in triangles)

    def test_ignores_unknown_directives(self, tmp_path):
        content = "mtllib x.mtl\no thing\ng group\ns 1\nusemtl red\n" + QUAD_OBJ
        assert len(load_obj(write_obj(tmp_path, content))) == 2

    def test_malformed_lines_are_skipped(self, tmp_path):
        content = "v 0 0 0\nv 1 0\nv 1 0 0\nv 0 1 0\nv nope 0 0\nf 1 2 3\nf 1 2 9\n"
        loader = OBJLoader()
        triangles = loader.load(write_obj(tmp_path, content))
        assert len(triangles) == 1
        assert loader.skipped_lines == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_obj(tmp_path / "missing.obj")


class TestOBJTransform:
    """The placement transform is applied while loading."""

    def test_translate_and_scale(self, tmp_path):
        transform = Transform(Point3(0, 0, 5), scale=2.0)
        triangles = load_obj(write_obj(tmp_path, QUAD_OBJ), transform)
        assert triangles[0].v0 == Point3(-2, -2, 5)

    def test_rotation_applies_to_normals(self, tmp_path):
        rotation = Quaternion.axis_angle(Vec3(0, 1, 0), math.pi / 2)
        triangles = load_obj(write_obj(tmp_path, QUAD_OBJ), Transform(rotation=rotation))
        assert triangles[0].normal == Vec3(1, 0, 0)


class TestOBJModel:
    """Test loading straight into a Mesh."""

    def test_load_obj_model(self, tmp_path):
        mat = Material()
        mesh = load_obj_model(
            write_obj(tmp_path, QUAD_OBJ),
            Transform(Point3(0, 0, 5)),
            mat,
            SplitPolicy.LONGEST_AXIS
        )
        assert isinstance(mesh, Mesh)
        assert mesh.name == "model.obj"
        assert mesh.material is mat
        hit = mesh.intersect(Ray(Point3(0.5, 0.5, 0), Vec3(0, 0, 1)))
        assert hit.position == Point3(0.5, 0.5, 5)

    def test_mesh_stats(self, tmp_path):
        mesh = load_obj_model(write_obj(tmp_path, QUAD_OBJ))
        stats = get_mesh_stats(mesh)
        assert stats['triangle_count'] == 2
        assert stats['bounds_min'] == (-1.0, -1.0, 0.0)
        assert stats['bounds_max'] == (1.0, 1.0, 0.0)
        assert stats['size'] == (2.0, 2.0, 0.0)
        assert stats['bvh_depth'] == 2
