"""
Vector3 class for 3D math operations.

Used throughout the tracer for:
- Points in 3D space
- Direction vectors
- RGB color values (0-1 per channel, unclamped)
"""

from __future__ import annotations
import math
from typing import Union
import numpy as np


class Vec3:
    """A 3D vector backed by a small numpy array."""

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self._data = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vec3:
        """Create Vec3 from numpy array."""
        v = cls.__new__(cls)
        v._data = np.asarray(arr, dtype=np.float64)
        return v

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    # Aliases for color operations
    @property
    def r(self) -> float:
        return self.x

    @property
    def g(self) -> float:
        return self.y

    @property
    def b(self) -> float:
        return self.z

    def __repr__(self) -> str:
        return f"Vec3({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vec3):
            return NotImplemented
        return bool(np.allclose(self._data, other._data))

    def __hash__(self) -> int:
        return hash(tuple(self._data))

    def __iter__(self):
        return iter((self.x, self.y, self.z))

    def __neg__(self) -> Vec3:
        return Vec3.from_array(-self._data)

    def __add__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data + other._data)
        return Vec3.from_array(self._data + other)

    def __radd__(self, other: float) -> Vec3:
        return Vec3.from_array(other + self._data)

    def __sub__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data - other._data)
        return Vec3.from_array(self._data - other)

    def __mul__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data * other._data)
        return Vec3.from_array(self._data * other)

    def __rmul__(self, other: float) -> Vec3:
        return Vec3.from_array(other * self._data)

    def __truediv__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data / other._data)
        return Vec3.from_array(self._data / other)

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def length(self) -> float:
        """Return the magnitude (length) of the vector."""
        return math.sqrt(self.length_squared())

    def length_squared(self) -> float:
        """Return the squared magnitude (avoids sqrt for comparisons)."""
        return float(np.dot(self._data, self._data))

    def normalize(self) -> Vec3:
        """Return a unit vector in the same direction."""
        length = self.length()
        if length == 0:
            return Vec3(0, 0, 0)
        return Vec3.from_array(self._data / length)

    def dot(self, other: Vec3) -> float:
        """Compute dot product with another vector."""
        return float(np.dot(self._data, other._data))

    def cross(self, other: Vec3) -> Vec3:
        """Compute cross product with another vector."""
        a = self._data
        b = other._data
        return Vec3(
            a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0]
        )

    def reflect(self, normal: Vec3) -> Vec3:
        """Mirror this vector about the given unit normal: D - 2(D.N)N."""
        return self - normal * (2.0 * self.dot(normal))

    def min(self, other: Vec3) -> Vec3:
        """Component-wise minimum."""
        return Vec3.from_array(np.minimum(self._data, other._data))

    def max(self, other: Vec3) -> Vec3:
        """Component-wise maximum."""
        return Vec3.from_array(np.maximum(self._data, other._data))

    def is_finite(self) -> bool:
        """True if no component is NaN or infinite."""
        return bool(np.all(np.isfinite(self._data)))

    def to_array(self) -> np.ndarray:
        """Return the underlying numpy array (copy)."""
        return self._data.copy()

    def clamp(self, min_val: float = 0.0, max_val: float = 1.0) -> Vec3:
        """Clamp all components to the given range."""
        return Vec3.from_array(np.clip(self._data, min_val, max_val))


# Convenience type aliases
Point3 = Vec3
Color = Vec3
