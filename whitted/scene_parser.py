"""
Scene description parser.

Reads a YAML (or JSON) scene description and builds a Scene together with
its RenderSettings.

Example scene file:
```yaml
options:
  width: 400
  height: 300
  aa_multiplier: 2
  max_depth: 8

camera:
  position: [0, 1, -5]
  rotation: {axis: [0, 1, 0], angle: 0}
  aperture_radius: 0.0
  focal_length: 5.0

ambient_light: [0.1, 0.1, 0.1]

materials:
  red:
    ambient: [0.1, 0, 0]
    diffuse: [0.8, 0.1, 0.1]
    specular: [0.5, 0.5, 0.5]
    shininess: 50
  glass:
    transmissivity: 1.0
    refractive_index: 1.5

entities:
  - type: sphere
    center: [0, 1, 2]
    radius: 1
    material: glass
  - type: obj
    name: bunny
    path: models/bunny.obj
    position: [1, 0, 3]
    scale: 2
    material: red

lights:
  - position: [0, 5, 0]
    color: [1, 1, 1]

animations:
  - entity: bunny
    translation: [0, 0.1, 0]
    rotation: {axis: [0, 1, 0], angle: 5}
```

Angles are in degrees. Relative OBJ paths resolve against the scene file.
"""

from __future__ import annotations
import json
import math
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from .vec3 import Vec3, Color
from .transform import Quaternion, Transform
from .materials import Material
from .shapes import Sphere, Triangle
from .lights import PointLight, AreaLight
from .camera import Camera
from .mesh import Mesh
from .obj_loader import load_obj_model
from .animation import SimpleAnimation
from .bvh import SplitPolicy
from .renderer import RenderSettings
from .scene import Scene


class SceneParseError(Exception):
    """Error during scene parsing."""
    pass


class SceneParser:
    """Parser for scene description files."""

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.materials: Dict[str, Material] = {}
        self.named_entities: Dict[str, Any] = {}
        self.settings: Optional[RenderSettings] = None

    def parse_file(
        self,
        filepath: Union[str, Path],
        overrides: Optional[Dict[str, Any]] = None
    ) -> Tuple[Scene, RenderSettings]:
        """Parse a scene file.

        Args:
            filepath: Path to the scene file (YAML or JSON)
            overrides: Option values that replace the file's `options`

        Returns:
            Tuple of (scene, settings)
        """
        path = Path(filepath)
        if not path.exists():
            raise SceneParseError(f"Scene file not found: {filepath}")

        self.base_dir = path.parent
        content = path.read_text()

        try:
            if path.suffix == '.json':
                data = json.loads(content)
            else:
                # YAML is a superset of JSON
                data = yaml.safe_load(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SceneParseError(f"Could not parse {path.name}: {e}") from e

        if not isinstance(data, dict):
            raise SceneParseError(f"Scene file {path.name} must contain a mapping")

        return self.parse_dict(data, overrides)

    def parse_dict(
        self,
        data: Dict[str, Any],
        overrides: Optional[Dict[str, Any]] = None
    ) -> Tuple[Scene, RenderSettings]:
        """Parse a scene from a dictionary."""
        self._parse_settings(data.get('options') or {}, overrides or {})
        scene = Scene(self.settings)

        # Materials first (entities reference them)
        if 'materials' in data:
            self._parse_materials(data['materials'])

        for entity_data in data.get('entities') or []:
            self._parse_entity(scene, entity_data)

        for light_data in data.get('lights') or []:
            scene.add_point_light(self._parse_light(light_data))

        if 'ambient_light' in data:
            scene.set_ambient_light_color(self._parse_color(data['ambient_light']))

        if 'camera' in data:
            scene.set_camera(self._parse_camera(data['camera']))

        for anim_data in data.get('animations') or []:
            scene.add_animation(self._parse_animation(anim_data))

        return scene, self.settings

    def _parse_vec3(self, data: Any) -> Vec3:
        """Parse a Vec3 from a list or an {x, y, z} mapping."""
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneParseError(f"Vec3 must have 3 components, got {len(data)}")
            components = data
        elif isinstance(data, dict):
            components = (data.get('x', 0), data.get('y', 0), data.get('z', 0))
        else:
            raise SceneParseError(f"Cannot parse Vec3 from: {data}")
        try:
            return Vec3(*(float(c) for c in components))
        except (ValueError, TypeError) as e:
            raise SceneParseError(f"Cannot parse Vec3 from: {data}") from e

    def _parse_color(self, data: Any) -> Color:
        """Parse a Color from a list, an {r, g, b} mapping or a hex string."""
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneParseError(f"Color must have 3 components, got {len(data)}")
            components = data
        elif isinstance(data, dict):
            components = (data.get('r', 0), data.get('g', 0), data.get('b', 0))
        elif isinstance(data, str):
            if data.startswith('#') and len(data) == 7:
                try:
                    r = int(data[1:3], 16) / 255.0
                    g = int(data[3:5], 16) / 255.0
                    b = int(data[5:7], 16) / 255.0
                except ValueError as e:
                    raise SceneParseError(f"Cannot parse color from string: {data}") from e
                return Color(r, g, b)
            raise SceneParseError(f"Cannot parse color from string: {data}")
        else:
            raise SceneParseError(f"Cannot parse Color from: {data}")
        try:
            return Color(*(float(c) for c in components))
        except (ValueError, TypeError) as e:
            raise SceneParseError(f"Cannot parse Color from: {data}") from e

    def _parse_rotation(self, data: Any) -> Quaternion:
        """Parse {axis, angle} or [x, y, z] euler degrees into a quaternion."""
        if data is None:
            return Quaternion.identity()
        if isinstance(data, dict):
            axis = self._parse_vec3(data.get('axis', [0, 1, 0]))
            try:
                angle = math.radians(float(data.get('angle', 0.0)))
            except (ValueError, TypeError) as e:
                raise SceneParseError(f"Invalid rotation angle: {data.get('angle')}") from e
            return Quaternion.axis_angle(axis, angle)
        euler = self._parse_vec3(data)
        return Quaternion.from_euler(
            math.radians(euler.x), math.radians(euler.y), math.radians(euler.z)
        )

    def _parse_transform(self, data: Dict[str, Any]) -> Transform:
        try:
            scale = float(data.get('scale', 1.0))
        except (ValueError, TypeError) as e:
            raise SceneParseError(f"Invalid scale: {data.get('scale')}") from e
        return Transform(
            self._parse_vec3(data.get('position', [0, 0, 0])),
            self._parse_rotation(data.get('rotation')),
            scale
        )

    def _parse_settings(self, options: Dict[str, Any], overrides: Dict[str, Any]) -> None:
        """Map the `options` section (plus overrides) onto RenderSettings."""
        known = {f.name for f in fields(RenderSettings)}
        merged = dict(options)
        merged.update({k: v for k, v in overrides.items() if v is not None})

        unknown = set(merged) - known
        if unknown:
            raise SceneParseError(f"Unknown options: {', '.join(sorted(unknown))}")

        if 'split_policy' in merged and not isinstance(merged['split_policy'], SplitPolicy):
            try:
                merged['split_policy'] = SplitPolicy(merged['split_policy'])
            except ValueError as e:
                raise SceneParseError(f"Unknown split policy: {merged['split_policy']}") from e

        try:
            self.settings = RenderSettings(**merged)
        except (TypeError, ValueError) as e:
            raise SceneParseError(f"Invalid options: {e}") from e

    def _parse_materials(self, materials_data: Dict[str, Any]) -> None:
        """Parse materials section."""
        for name, mat_data in materials_data.items():
            self.materials[name] = self._build_material(mat_data)

    def _build_material(self, mat_data: Dict[str, Any]) -> Material:
        try:
            return Material(
                ambient_color=self._parse_color(mat_data.get('ambient', [0, 0, 0])),
                diffuse_color=self._parse_color(mat_data.get('diffuse', [0, 0, 0])),
                specular_color=self._parse_color(mat_data.get('specular', [0, 0, 0])),
                shininess=float(mat_data.get('shininess', 1.0)),
                reflectivity=float(mat_data.get('reflectivity', 0.0)),
                transmissivity=float(mat_data.get('transmissivity', 0.0)),
                refractive_index=float(mat_data.get('refractive_index', 1.0))
            )
        except (ValueError, TypeError) as e:
            raise SceneParseError(f"Invalid material: {e}") from e

    def _get_material(self, mat_ref: Any) -> Optional[Material]:
        """Get a material by name or inline definition."""
        if mat_ref is None:
            return None
        if isinstance(mat_ref, str):
            if mat_ref not in self.materials:
                raise SceneParseError(f"Unknown material: {mat_ref}")
            return self.materials[mat_ref]
        elif isinstance(mat_ref, dict):
            return self._build_material(mat_ref)
        else:
            raise SceneParseError(f"Invalid material reference: {mat_ref}")

    def _parse_entity(self, scene: Scene, entity_data: Dict[str, Any]) -> None:
        entity_type = entity_data.get('type', 'sphere').lower()
        material = self._get_material(entity_data.get('material'))

        try:
            if entity_type == 'sphere':
                entity = Sphere(
                    self._parse_vec3(entity_data.get('center', [0, 0, 0])),
                    float(entity_data.get('radius', 1.0)),
                    material
                )

            elif entity_type == 'triangle':
                entity = Triangle(
                    self._parse_vec3(entity_data['v0']),
                    self._parse_vec3(entity_data['v1']),
                    self._parse_vec3(entity_data['v2']),
                    material
                )

            elif entity_type == 'obj':
                path = Path(entity_data['path'])
                if not path.is_absolute():
                    path = self.base_dir / path
                entity = load_obj_model(
                    path,
                    self._parse_transform(entity_data),
                    material,
                    self.settings.split_policy
                )

            elif entity_type == 'area_light':
                entity = AreaLight(
                    self._parse_vec3(entity_data.get('position', [0, 5, 0])),
                    self._parse_vec3(entity_data.get('normal', [0, -1, 0])),
                    self._parse_vec3(entity_data.get('up', [0, 0, 1])),
                    float(entity_data.get('width', 1.0)),
                    float(entity_data.get('height', 1.0)),
                    self._parse_color(entity_data.get('color', [1, 1, 1])),
                    material
                )

            else:
                raise SceneParseError(f"Unknown entity type: {entity_type}")

        except KeyError as e:
            raise SceneParseError(f"{entity_type} entity is missing {e}") from e
        except (ValueError, TypeError) as e:
            raise SceneParseError(f"Invalid {entity_type} entity: {e}") from e
        except FileNotFoundError as e:
            raise SceneParseError(str(e)) from e

        scene.add_entity(entity)
        if 'name' in entity_data:
            self.named_entities[entity_data['name']] = entity

    def _parse_light(self, light_data: Dict[str, Any]) -> PointLight:
        light_type = light_data.get('type', 'point').lower()
        if light_type != 'point':
            raise SceneParseError(f"Unknown light type: {light_type}")
        try:
            return PointLight(
                self._parse_vec3(light_data.get('position', [0, 5, 0])),
                self._parse_color(light_data.get('color', [1, 1, 1]))
            )
        except (ValueError, TypeError) as e:
            raise SceneParseError(f"Invalid point light: {e}") from e

    def _parse_camera(self, camera_data: Dict[str, Any]) -> Camera:
        """Parse camera section."""
        try:
            return Camera(
                self._parse_transform(camera_data),
                float(camera_data.get('aperture_radius', 0.0)),
                float(camera_data.get('focal_length', 1.0))
            )
        except (ValueError, TypeError) as e:
            raise SceneParseError(f"Invalid camera: {e}") from e

    def _parse_animation(self, anim_data: Dict[str, Any]) -> SimpleAnimation:
        name = anim_data.get('entity')
        mesh = self.named_entities.get(name)
        if not isinstance(mesh, Mesh):
            raise SceneParseError(f"Animation target must be a named obj entity, got {name!r}")
        try:
            return SimpleAnimation(
                mesh,
                self._parse_vec3(anim_data.get('translation', [0, 0, 0])),
                self._parse_rotation(anim_data.get('rotation'))
            )
        except (ValueError, TypeError) as e:
            raise SceneParseError(f"Invalid animation for {name!r}: {e}") from e


def load_scene(
    filepath: Union[str, Path],
    overrides: Optional[Dict[str, Any]] = None
) -> Tuple[Scene, RenderSettings]:
    """Convenience function to load a scene file.

    Args:
        filepath: Path to the scene file
        overrides: Option values that replace the file's `options`

    Returns:
        Tuple of (scene, settings)
    """
    parser = SceneParser()
    return parser.parse_file(filepath, overrides)


def parse_scene(
    data: Dict[str, Any],
    base_dir: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> Tuple[Scene, RenderSettings]:
    """Convenience function to parse a scene from a dictionary.

    Args:
        data: Scene description dictionary
        base_dir: Directory that relative OBJ paths resolve against
        overrides: Option values that replace the dictionary's `options`

    Returns:
        Tuple of (scene, settings)
    """
    parser = SceneParser(base_dir)
    return parser.parse_dict(data, overrides)
