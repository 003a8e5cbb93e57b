"""Surface material model for Blinn-Phong shading and Fresnel transport.

Materials live in a scene-owned pool; shapes refer to them by index.

Example:
    >>> from rt_core.material import Material
    >>> glass = Material.glass(refraction=1.5)
    >>> glass.is_opaque
    False
    >>> Material.matte([1.0, 0.0, 0.0]).is_opaque
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Sequence

import numpy as np

from rt_core.errors import MissingMaterialError, RenderError
from rt_core.vector import Vec3

if TYPE_CHECKING:
    from rt_core.image import Image
    from rt_core.rays import Collision

OPACITY_EPS = 1e-12


def _color(value) -> Vec3:
    return np.asarray(value, dtype=float).reshape(3)


@dataclass(frozen=True)
class Material:
    color: Vec3 = field(default_factory=lambda: np.ones(3, dtype=float))
    highlight: Vec3 = field(default_factory=lambda: np.ones(3, dtype=float))
    ambient: float = 0.1
    diffuse: float = 0.7
    specular: float = 0.2
    exponent: int = 20
    texture: int | None = None
    opacity: float = 1.0
    refraction: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", _color(self.color))
        object.__setattr__(self, "highlight", _color(self.highlight))
        object.__setattr__(self, "exponent", int(self.exponent))
        if not 0.0 <= float(self.opacity) <= 1.0:
            raise ValueError(f"Material opacity must lie in [0, 1], got {self.opacity}")
        if float(self.refraction) <= 0.0:
            raise ValueError(f"Material refraction index must be positive, got {self.refraction}")

    @property
    def is_opaque(self) -> bool:
        return abs(float(self.opacity) - 1.0) < OPACITY_EPS

    @staticmethod
    def matte(color, ambient: float = 0.2, diffuse: float = 0.8) -> "Material":
        return Material(color=color, highlight=np.ones(3), ambient=ambient, diffuse=diffuse, specular=0.0, exponent=1)

    @staticmethod
    def glass(refraction: float = 1.5, opacity: float = 0.1, color=(1.0, 1.0, 1.0)) -> "Material":
        return Material(
            color=color,
            highlight=np.ones(3),
            ambient=0.0,
            diffuse=0.1,
            specular=0.6,
            exponent=60,
            opacity=opacity,
            refraction=refraction,
        )

    def with_texture(self, texture: int | None) -> "Material":
        return Material(
            color=self.color,
            highlight=self.highlight,
            ambient=self.ambient,
            diffuse=self.diffuse,
            specular=self.specular,
            exponent=self.exponent,
            texture=texture,
            opacity=self.opacity,
            refraction=self.refraction,
        )


def object_color(collision: "Collision", textures: Sequence["Image"] = ()) -> Vec3:
    """Diffuse colour at a collision: texture sample when available, else flat colour."""

    material = collision.material
    if material is None:
        raise MissingMaterialError("Collision carries no material")
    if material.texture is not None and collision.texcoord is not None:
        if not 0 <= material.texture < len(textures):
            raise RenderError(f"Material refers to missing texture {material.texture}")
        return textures[material.texture].sample(collision.texcoord)
    return np.array(material.color, dtype=float)
