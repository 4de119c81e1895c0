"""
Renderer module - the heart of the ray tracer.

Implements:
- The per-pixel sampling loop (grid anti-aliasing and depth-of-field samples)
- Column-parallel rendering with one random generator per task
- Recursive Whitted shading: Phong direct light with hard shadows,
  mirror reflection and Snell refraction with total internal reflection
"""

from __future__ import annotations
import logging
import math
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, TYPE_CHECKING

import numpy as np

from .vec3 import Vec3, Color
from .ray import Ray
from .shapes import RayHit, SceneEntity, EPSILON
from .materials import Material
from .lights import PointLight, phong_lighting
from .bvh import SplitPolicy
from .image import Image

if TYPE_CHECKING:
    from .scene import Scene

logger = logging.getLogger(__name__)


@dataclass
class RenderSettings:
    """Configuration for the renderer.

    Invalid values raise ValueError here, at scene-setup time, rather than
    surfacing during per-pixel shading.
    """
    width: int = 800
    height: int = 600
    aa_multiplier: int = 1
    dof_samples: int = 2
    aperture_radius: float = 0.0
    focal_length: float = 1.0
    max_depth: int = 8
    fov: float = 60.0
    num_threads: int = 0  # 0 = auto-detect
    epsilon: float = EPSILON
    seed: Optional[int] = None
    split_policy: SplitPolicy = SplitPolicy.FIRST_VERTEX_X

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.aa_multiplier < 1:
            raise ValueError(f"aa_multiplier must be >= 1, got {self.aa_multiplier}")
        if self.dof_samples < 1:
            raise ValueError(f"dof_samples must be >= 1, got {self.dof_samples}")
        if self.aperture_radius < 0:
            raise ValueError(f"aperture_radius must be >= 0, got {self.aperture_radius}")
        if self.focal_length <= 0:
            raise ValueError(f"focal_length must be > 0, got {self.focal_length}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if not 0.0 < self.fov < 180.0:
            raise ValueError(f"fov must be in (0, 180) degrees, got {self.fov}")
        if self.epsilon <= 0:
            raise ValueError(f"epsilon must be > 0, got {self.epsilon}")
        if self.num_threads < 0:
            raise ValueError(f"num_threads must be >= 0, got {self.num_threads}")
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4

    @property
    def depth_of_field(self) -> bool:
        return self.aperture_radius > 0.0


def map_coordinates(
    x_raster: float,
    y_raster: float,
    width: int,
    height: int,
    fov: float = 60.0
) -> Tuple[float, float]:
    """Convert a raster position to camera-space image-plane coordinates.

    raster -> NDC [0, 1] -> screen [-1, 1] (y flipped so +y is up) ->
    camera space scaled by tan(fov / 2), with x also scaled by the aspect
    ratio. `fov` therefore spans the image height; the horizontal extent
    widens with the aspect. Pixel centres sit at half-integer raster
    positions.
    """
    aspect_ratio = width / height
    scale = math.tan(math.radians(fov) / 2.0)

    x = x_raster / width
    y = y_raster / height

    x = 2.0 * x - 1.0
    y = 1.0 - 2.0 * y

    return x * scale * aspect_ratio, y * scale


class Renderer:
    """Whitted ray tracer with column-parallel sampling."""

    def __init__(self, settings: RenderSettings = None):
        self.settings = settings if settings else RenderSettings()
        self._progress_callback: Optional[Callable[[float], None]] = None

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def render(self, scene: Scene, image: Image) -> Image:
        """Render every pixel of `image` from the scene's camera.

        The scene must not change while this runs; animations belong before
        the call (see Scene.render). Stale acceleration structures are
        rebuilt here, serially, before any column task starts.
        """
        for entity in scene.entities:
            entity.prepare()

        settings = self.settings
        camera = scene.camera
        width, height = image.width, image.height

        aa = settings.aa_multiplier
        dof = settings.dof_samples if camera.aperture_radius > 0.0 else 1
        total_samples = (aa * dof) ** 2

        right, up, forward = camera.basis()

        # One independent generator per column task
        seeds = np.random.SeedSequence(settings.seed).spawn(width)

        completed = [0]
        lock = threading.Lock()

        def render_column(x: int) -> None:
            rng = np.random.default_rng(seeds[x])
            for y in range(height):
                pixel_color = Color(0, 0, 0)

                for ss_x in range(aa):
                    for ss_y in range(aa):
                        sub_x = x + (ss_x + 0.5) / aa
                        sub_y = y + (ss_y + 0.5) / aa
                        cx, cy = map_coordinates(sub_x, sub_y, width, height, settings.fov)
                        direction = (forward + right * cx + up * cy).normalize()

                        for _ in range(dof * dof):
                            ray = camera.generate_ray(direction, rng)
                            pixel_color = pixel_color + self.trace_ray(ray, scene, 0)

                image.set_pixel(x, y, pixel_color / total_samples)

            if self._progress_callback:
                with lock:
                    completed[0] += 1
                    progress = completed[0] / width
                self._progress_callback(progress)

        start = time.perf_counter()

        if settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=settings.num_threads) as executor:
                list(executor.map(render_column, range(width)))
        else:
            for x in range(width):
                render_column(x)

        elapsed = time.perf_counter() - start
        logger.info(
            "Rendered %dx%d at %d samples/pixel in %.2fs",
            width, height, total_samples, elapsed
        )
        return image

    def nearest_hit(self, ray: Ray, scene: Scene) -> Optional[Tuple[RayHit, SceneEntity]]:
        """Closest hit over all entities by squared distance from the ray origin."""
        closest: Optional[RayHit] = None
        closest_entity: Optional[SceneEntity] = None
        min_dist = math.inf

        for entity in scene.entities:
            hit = entity.intersect(ray)
            if hit is None:
                continue
            dist = hit.distance_squared(ray.origin)
            if dist < min_dist:
                min_dist = dist
                closest = hit
                closest_entity = entity

        if closest is None:
            return None
        return closest, closest_entity

    def trace_ray(self, ray: Ray, scene: Scene, depth: int = 0) -> Color:
        """Compute the color seen along a ray.

        Args:
            ray: The ray to trace
            scene: The scene to trace against
            depth: Number of reflection/refraction bounces so far

        Returns:
            The accumulated color; black past the depth limit or on a miss
        """
        if depth > self.settings.max_depth:
            return Color(0, 0, 0)

        nearest = self.nearest_hit(ray, scene)
        if nearest is None:
            return Color(0, 0, 0)

        hit, entity = nearest
        material = hit.material if hit.material is not None else entity.material
        if material is None:
            return Color(0, 0, 0)

        color = material.ambient_color * scene.ambient_light

        for light in scene.lights:
            color = color + self.direct_lighting(hit, entity, material, light, scene)

        direction = ray.direction.normalize()
        normal = hit.normal.normalize()

        if material.reflectivity > 0:
            color = color + self._reflection(hit, direction, normal, scene, depth) * material.reflectivity

        if material.transmissivity > 0:
            color = color + self._refraction(hit, direction, normal, material, scene, depth)

        return color

    def is_occluded(
        self,
        hit: RayHit,
        entity: SceneEntity,
        light: PointLight,
        scene: Scene
    ) -> bool:
        """True if another entity blocks the segment from the hit to the light."""
        eps = self.settings.epsilon
        to_light = light.position - hit.position
        light_distance = to_light.length()
        if light_distance <= eps:
            return False
        direction = to_light / light_distance

        offset_normal = hit.normal if hit.normal.dot(direction) >= 0 else -hit.normal
        shadow_ray = Ray(hit.position + offset_normal * eps, direction)

        for other in scene.entities:
            if other is entity:
                continue
            shadow_hit = other.intersect(shadow_ray)
            if shadow_hit is None:
                continue
            hit_distance = (shadow_hit.position - hit.position).length()
            if eps < hit_distance < light_distance:
                return True
        return False

    def direct_lighting(
        self,
        hit: RayHit,
        entity: SceneEntity,
        material: Material,
        light: PointLight,
        scene: Scene
    ) -> Color:
        """Phong diffuse and specular from one point light, zero when in shadow."""
        if self.is_occluded(hit, entity, light, scene):
            return Color(0, 0, 0)
        return phong_lighting(material, hit, light, scene.camera.position)

    def _reflection(
        self,
        hit: RayHit,
        direction: Vec3,
        normal: Vec3,
        scene: Scene,
        depth: int
    ) -> Color:
        # Start on the side the ray came from
        facing = normal if direction.dot(normal) < 0 else -normal
        reflected = direction.reflect(normal).normalize()
        origin = hit.position + facing * self.settings.epsilon
        return self.trace_ray(Ray(origin, reflected), scene, depth + 1)

    def _refraction(
        self,
        hit: RayHit,
        direction: Vec3,
        normal: Vec3,
        material: Material,
        scene: Scene,
        depth: int
    ) -> Color:
        eps = self.settings.epsilon
        eta_i = 1.0
        eta_t = material.refractive_index
        surface_normal = normal

        # Leaving the object: flip the normal and swap the media
        if direction.dot(normal) > 0.0:
            surface_normal = -normal
            eta_i, eta_t = eta_t, eta_i

        ratio = eta_i / eta_t
        cos_i = -direction.dot(surface_normal)
        k = 1.0 - ratio * ratio * (1.0 - cos_i * cos_i)

        if k < 0.0:
            # Total internal reflection
            reflected = direction.reflect(surface_normal).normalize()
            origin = hit.position + surface_normal * eps
            return self.trace_ray(Ray(origin, reflected), scene, depth + 1) * material.reflectivity

        transmitted = (direction * ratio + surface_normal * (ratio * cos_i - math.sqrt(k))).normalize()
        origin = hit.position - surface_normal * eps
        return self.trace_ray(Ray(origin, transmitted), scene, depth + 1) * material.transmissivity
