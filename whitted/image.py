"""
Output image buffer.

Pixels are addressed with 0-indexed integer coordinates, origin top-left,
+x right, +y down. Colors are stored unclamped as float64 RGB and only
clamped when converted to 8-bit for encoding.
"""

from __future__ import annotations
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image as PILImage

from .vec3 import Color


class Image:
    """An RGB float image that the render loop writes into."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width, 3), dtype=np.float64)

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        self._check_bounds(x, y)
        self.pixels[y, x] = color.to_array()

    def get_pixel(self, x: int, y: int) -> Color:
        self._check_bounds(x, y)
        return Color.from_array(self.pixels[y, x].copy())

    def mean_color(self) -> Color:
        return Color.from_array(self.pixels.reshape(-1, 3).mean(axis=0))

    def to_ldr(self, gamma: float = 1.0) -> np.ndarray:
        """Convert to 8-bit, clamping to [0, 1] and applying optional gamma.

        Returns:
            LDR image as uint8 array of shape (height, width, 3)
        """
        clamped = np.clip(self.pixels, 0.0, 1.0)
        if gamma != 1.0:
            clamped = np.power(clamped, 1.0 / gamma)
        return np.clip(clamped * 255.0 + 0.5, 0, 255).astype(np.uint8)

    def save(self, filename: Union[str, Path], gamma: float = 1.0) -> None:
        """Encode to disk; the extension selects the format (png, jpg, bmp, ...)."""
        PILImage.fromarray(self.to_ldr(gamma), 'RGB').save(str(filename))

    def __repr__(self) -> str:
        return f"Image({self.width}x{self.height})"
