"""
OBJ file loader for importing triangle meshes.

Supports:
- Vertices (v), placed in the world through a Transform
- Texture coordinates (vt)
- Normals (vn), averaged per face
- Faces (f) in v, v/vt, v//vn and v/vt/vn forms, fan-triangulated
- Negative (relative) indices

Materials, groups and smoothing directives are ignored; the caller assigns
one material to the whole mesh.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .vec3 import Vec3, Point3
from .transform import Transform
from .shapes import Triangle
from .materials import Material
from .bvh import SplitPolicy
from .mesh import Mesh

logger = logging.getLogger(__name__)


@dataclass
class OBJVertex:
    """A face corner with optional texture coordinate and normal indices."""
    position_idx: int
    texcoord_idx: Optional[int] = None
    normal_idx: Optional[int] = None


class OBJLoader:
    """Loader for Wavefront OBJ files."""

    def __init__(self):
        self.vertices: List[Point3] = []
        self.texcoords: List[Tuple[float, float]] = []
        self.normals: List[Vec3] = []
        self.skipped_lines = 0

    def load(
        self,
        filename: Union[str, Path],
        transform: Optional[Transform] = None,
        material: Optional[Material] = None
    ) -> List[Triangle]:
        """Load an OBJ file and return its triangles in world space.

        Args:
            filename: Path to the OBJ file
            transform: Placement applied to every vertex position
            material: Material shared by every triangle

        Returns:
            List of triangles
        """
        path = Path(filename)
        if not path.exists():
            raise FileNotFoundError(f"OBJ file not found: {filename}")

        transform = transform if transform is not None else Transform.identity()
        self.vertices = []
        self.texcoords = []
        self.normals = []
        self.skipped_lines = 0

        faces: List[List[OBJVertex]] = []

        with open(path, 'r') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()

                # Skip empty lines and comments
                if not line or line.startswith('#'):
                    continue

                parts = line.split()
                cmd = parts[0]

                try:
                    if cmd == 'v':
                        x, y, z = float(parts[1]), float(parts[2]), float(parts[3])
                        self.vertices.append(transform.apply(Point3(x, y, z)))

                    elif cmd == 'vt':
                        u = float(parts[1])
                        v = float(parts[2]) if len(parts) > 2 else 0.0
                        self.texcoords.append((u, v))

                    elif cmd == 'vn':
                        nx, ny, nz = float(parts[1]), float(parts[2]), float(parts[3])
                        normal = transform.rotation.rotate(Vec3(nx, ny, nz))
                        self.normals.append(normal.normalize())

                    elif cmd == 'f':
                        faces.append(self._parse_face(parts[1:]))

                except (ValueError, IndexError):
                    logger.warning("Skipping malformed line %d in %s: %s", line_num, path.name, line)
                    self.skipped_lines += 1

        triangles: List[Triangle] = []
        for face_num, face in enumerate(faces, 1):
            try:
                triangles.extend(self._triangulate_face(face, material))
            except IndexError:
                logger.warning("Skipping face %d in %s: index out of range", face_num, path.name)
                self.skipped_lines += 1

        return triangles

    def _resolve(self, raw: str, count: int) -> int:
        idx = int(raw)
        if idx < 0:
            idx = count + idx + 1
        return idx - 1  # Convert to 0-indexed

    def _parse_face(self, face_parts: List[str]) -> List[OBJVertex]:
        """Parse face vertex indices (handles v, v/vt, v/vt/vn, v//vn formats)."""
        vertices = []

        for part in face_parts:
            indices = part.split('/')

            pos_idx = self._resolve(indices[0], len(self.vertices))

            tex_idx = None
            if len(indices) > 1 and indices[1]:
                tex_idx = self._resolve(indices[1], len(self.texcoords))

            norm_idx = None
            if len(indices) > 2 and indices[2]:
                norm_idx = self._resolve(indices[2], len(self.normals))

            vertices.append(OBJVertex(pos_idx, tex_idx, norm_idx))

        return vertices

    def _triangulate_face(self, face_verts: List[OBJVertex], material: Optional[Material]) -> List[Triangle]:
        """Fan-triangulate a face: (v0, v1, v2), (v0, v2, v3), ..."""
        triangles = []

        if len(face_verts) < 3:
            return triangles

        first = face_verts[0]

        for i in range(1, len(face_verts) - 1):
            corners = (first, face_verts[i], face_verts[i + 1])
            p0, p1, p2 = (self._position(c) for c in corners)

            normal = None
            if all(c.normal_idx is not None for c in corners):
                total = Vec3(0, 0, 0)
                for c in corners:
                    total = total + self.normals[c.normal_idx]
                normal = total.normalize()

            tex_coords = None
            if all(c.texcoord_idx is not None for c in corners):
                tex_coords = [self.texcoords[c.texcoord_idx] for c in corners]

            triangles.append(Triangle(p0, p1, p2, material, normal, tex_coords))

        return triangles

    def _position(self, corner: OBJVertex) -> Point3:
        if corner.position_idx < 0:
            raise IndexError(corner.position_idx)
        return self.vertices[corner.position_idx]


def load_obj(
    filename: Union[str, Path],
    transform: Optional[Transform] = None,
    material: Optional[Material] = None
) -> List[Triangle]:
    """Convenience function to load the triangles of an OBJ file."""
    loader = OBJLoader()
    return loader.load(filename, transform, material)


def load_obj_model(
    filename: Union[str, Path],
    transform: Optional[Transform] = None,
    material: Optional[Material] = None,
    split_policy: SplitPolicy = SplitPolicy.FIRST_VERTEX_X
) -> Mesh:
    """Load an OBJ file as a BVH-backed mesh entity.

    Args:
        filename: Path to the OBJ file
        transform: World placement; its position is the mesh's rotation pivot
        material: Material for the whole mesh
        split_policy: BVH split ordering

    Returns:
        A Mesh ready to add to a scene
    """
    start = time.perf_counter()
    triangles = load_obj(filename, transform, material)
    mesh = Mesh(triangles, material, transform, split_policy, name=Path(filename).name)
    logger.info(
        "Loaded %s: %d triangles in %.3fs",
        Path(filename).name, len(triangles), time.perf_counter() - start
    )
    return mesh


def get_mesh_stats(mesh: Mesh) -> Dict[str, Any]:
    """Get statistics about a loaded mesh.

    Returns:
        Dictionary with mesh statistics
    """
    bbox = mesh.bounding_box()
    if bbox is None:
        min_pt, max_pt = Point3(0, 0, 0), Point3(0, 0, 0)
    else:
        min_pt, max_pt = bbox.lower, bbox.upper
    size = max_pt - min_pt

    return {
        'triangle_count': len(mesh),
        'bounds_min': (min_pt.x, min_pt.y, min_pt.z),
        'bounds_max': (max_pt.x, max_pt.y, max_pt.z),
        'size': (size.x, size.y, size.z),
        'bvh_depth': mesh.bvh.depth(),
    }
