"""RGB pixel buffer used as render target and as texture map.

Example:
    >>> import numpy as np
    >>> from rt_core.image import Image, color_to_rgb
    >>> img = Image.blank(2, 1)
    >>> img.set_pixel(1, 0, color_to_rgb(np.array([1.0, 0.5, 0.0])))
    >>> img.get_pixel(1, 0)
    (255, 127, 0)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

RGB_MAX = 255
MAX_DIMENSION = 65535

RGB = tuple[int, int, int]


def color_to_rgb(color: NDArray[np.float64]) -> RGB:
    """Clamp to [0, 1] and scale to 0..255, truncating like an integer cast."""

    c = np.clip(np.asarray(color, dtype=float), 0.0, 1.0)
    r, g, b = (int(x * RGB_MAX) for x in c)
    return r, g, b


def rgb_to_color(rgb) -> NDArray[np.float64]:
    return np.asarray(rgb, dtype=float).reshape(3) / RGB_MAX


@dataclass
class Image:
    """``(height, width, 3)`` uint8 buffer addressed as (x, y) from the upper left."""

    pixels: NDArray[np.uint8]

    def __post_init__(self) -> None:
        px = np.asarray(self.pixels)
        if px.ndim != 3 or px.shape[2] != 3:
            raise ValueError(f"Image pixels must have shape (height, width, 3), got {px.shape}")
        self.pixels = px.astype(np.uint8, copy=False)

    @staticmethod
    def blank(width: int, height: int) -> "Image":
        if not 0 < int(width) <= MAX_DIMENSION:
            raise ValueError(f"Invalid image width {width}")
        if not 0 < int(height) <= MAX_DIMENSION:
            raise ValueError(f"Invalid image height {height}")
        return Image(np.zeros((int(height), int(width), 3), dtype=np.uint8))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def _check(self, x: int, y: int) -> None:
        if not 0 <= x < self.width:
            raise IndexError(f"Invalid x coordinate {x}")
        if not 0 <= y < self.height:
            raise IndexError(f"Invalid y coordinate {y}")

    def set_pixel(self, x: int, y: int, rgb: RGB) -> None:
        self._check(x, y)
        self.pixels[y, x] = rgb

    def get_pixel(self, x: int, y: int) -> RGB:
        self._check(x, y)
        r, g, b = (int(v) for v in self.pixels[y, x])
        return r, g, b

    def sample(self, texcoord) -> NDArray[np.float64]:
        """Nearest-pixel texture lookup; coordinates outside [0, 1] clamp to the edge."""

        x = int(float(texcoord[0]) * self.width)
        y = int(float(texcoord[1]) * self.height)
        x = min(max(x, 0), self.width - 1)
        y = min(max(y, 0), self.height - 1)
        return rgb_to_color(self.pixels[y, x])
