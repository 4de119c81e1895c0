"""
Animation hooks run once per render before sampling starts.

An animation may move entity geometry. Meshes mark their BVH dirty when
their triangles change, and the scene rebuilds every dirty tree after all
animations have run and before any ray is traced.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

from .vec3 import Vec3
from .transform import Quaternion
from .mesh import Mesh


class Animation(ABC):
    """A per-render update callback."""

    @abstractmethod
    def update(self, time: float) -> None:
        """Advance the animated state to scene time `time` (seconds)."""


class SimpleAnimation(Animation):
    """Moves a mesh by a fixed translation and rotation each update."""

    def __init__(self, mesh: Mesh, translation: Vec3 = None, rotation: Quaternion = None):
        self.mesh = mesh
        self.translation = translation if translation is not None else Vec3(0, 0, 0)
        self.rotation = rotation if rotation is not None else Quaternion.identity()
        self.steps = 0

    def update(self, time: float) -> None:
        self.mesh.apply_transform(self.translation, self.rotation)
        self.steps += 1

    def __repr__(self) -> str:
        return f"SimpleAnimation(mesh={self.mesh!r}, steps={self.steps})"
