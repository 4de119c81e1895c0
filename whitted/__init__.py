"""
Whitted - A Python Whitted-style ray tracer

An offline batch renderer with:
- Phong direct lighting with hard shadows from point lights
- Recursive mirror reflection and Snell refraction
- Grid anti-aliasing and thin-lens depth of field
- BVH-accelerated triangle meshes loaded from OBJ files
- Column-parallel rendering
"""

__version__ = "0.1.0"
__author__ = "Whitted Team"

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .transform import Quaternion, Transform
from .materials import Material
from .shapes import SceneEntity, RayHit, Sphere, Triangle, BoundingBox, EPSILON
from .bvh import BVHNode, SplitPolicy, build_bvh
from .mesh import Mesh
from .lights import PointLight, AreaLight, phong_lighting
from .camera import Camera
from .animation import Animation, SimpleAnimation
from .image import Image
from .renderer import Renderer, RenderSettings, map_coordinates
from .scene import Scene
from .obj_loader import OBJLoader, load_obj, load_obj_model, get_mesh_stats
from .scene_parser import SceneParser, SceneParseError, load_scene, parse_scene
