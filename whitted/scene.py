"""
Scene container and render entry point.

A Scene exclusively owns its entities, point lights, animations and camera.
Each collection is keyed by the integer id returned when the item is added
and iterates in insertion order, so renders are deterministic given a seed.
"""

from __future__ import annotations
import itertools
import logging
from typing import Dict, List, Optional

from .vec3 import Color
from .shapes import SceneEntity
from .lights import PointLight
from .camera import Camera
from .animation import Animation
from .image import Image
from .renderer import Renderer, RenderSettings

logger = logging.getLogger(__name__)


class Scene:
    """A ray traced scene: objects, lights, animations and the camera."""

    def __init__(self, settings: RenderSettings = None):
        self.settings = settings if settings else RenderSettings()
        self.renderer = Renderer(self.settings)
        self.ambient_light = Color(0, 0, 0)
        self._ids = itertools.count()
        self._entities: Dict[int, SceneEntity] = {}
        self._lights: Dict[int, PointLight] = {}
        self._animations: Dict[int, Animation] = {}
        self.set_camera(Camera())

    def set_camera(self, camera: Camera) -> None:
        """Use `camera`; a scene-level aperture overrides the camera's lens."""
        self.camera = camera
        if self.settings.aperture_radius > 0.0:
            camera.focal_length = self.settings.focal_length
            camera.aperture_radius = self.settings.aperture_radius

    def set_ambient_light_color(self, color: Color) -> None:
        self.ambient_light = color

    def add_entity(self, entity: SceneEntity) -> int:
        entity_id = next(self._ids)
        self._entities[entity_id] = entity
        return entity_id

    def add_point_light(self, light: PointLight) -> int:
        light_id = next(self._ids)
        self._lights[light_id] = light
        return light_id

    def add_animation(self, animation: Animation) -> int:
        animation_id = next(self._ids)
        self._animations[animation_id] = animation
        return animation_id

    def remove(self, item_id: int) -> None:
        """Remove an entity, light or animation by id."""
        for collection in (self._entities, self._lights, self._animations):
            if item_id in collection:
                del collection[item_id]
                return
        raise KeyError(item_id)

    def get_entity(self, entity_id: int) -> Optional[SceneEntity]:
        return self._entities.get(entity_id)

    @property
    def entities(self) -> List[SceneEntity]:
        return list(self._entities.values())

    @property
    def lights(self) -> List[PointLight]:
        return list(self._lights.values())

    @property
    def animations(self) -> List[Animation]:
        return list(self._animations.values())

    def update(self, time: float = 0.0) -> None:
        """Run every animation, then rebuild any stale acceleration structure."""
        for animation in self._animations.values():
            animation.update(time)
        for entity in self._entities.values():
            entity.prepare()

    def render(self, image: Image, time: float = 0.0) -> Image:
        """Render the scene into `image` at scene time `time` (seconds).

        Blocks until every pixel has been written.
        """
        self.update(time)
        logger.debug(
            "Rendering %d entities, %d lights at t=%.3f",
            len(self._entities), len(self._lights), time
        )
        # Entity/light lists are snapshotted once per pass
        return self.renderer.render(_Snapshot(self), image)

    def __len__(self) -> int:
        return len(self._entities)

    def __repr__(self) -> str:
        return (
            f"Scene(entities={len(self._entities)}, lights={len(self._lights)}, "
            f"animations={len(self._animations)})"
        )


class _Snapshot:
    """Read-only view of a scene with its collections frozen into lists."""

    __slots__ = ('entities', 'lights', 'camera', 'ambient_light')

    def __init__(self, scene: Scene):
        self.entities = scene.entities
        self.lights = scene.lights
        self.camera = scene.camera
        self.ambient_light = scene.ambient_light
