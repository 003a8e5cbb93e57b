"""Immutable scene description consumed read-only by the renderer.

Example:
    >>> import numpy as np
    >>> from rt_core.material import Material
    >>> from rt_core.scene import Scene
    >>> from rt_core.shapes import Sphere
    >>> sc = Scene(
    ...     eye=np.array([0.0, 0.0, 4.0]), view=np.array([0.0, 0.0, -1.0]), up=np.array([0.0, 1.0, 0.0]),
    ...     fov_deg=60.0, width=4, height=3, background=np.zeros(3),
    ...     shapes=(Sphere(np.zeros(3), 1.0, material=0),), materials=(Material(),),
    ... )
    >>> sc.validate().aspect
    1.3333333333333333
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from rt_core.errors import MissingMaterialError
from rt_core.image import Image
from rt_core.lights import Light
from rt_core.material import Material
from rt_core.mesh import Mesh
from rt_core.shapes import Shape
from rt_core.vector import Vec3, is_parallel, is_zero

MIN_FOV = 0.0
MAX_FOV = 180.0
PROJECTIONS = ("perspective", "parallel")


@dataclass(frozen=True)
class Scene:
    eye: Vec3
    view: Vec3
    up: Vec3
    fov_deg: float
    width: int
    height: int
    background: Vec3
    shapes: Sequence[Shape] = ()
    lights: Sequence[Light] = ()
    materials: Sequence[Material] = ()
    textures: Sequence[Image] = ()
    mesh: Mesh | None = None
    projection: str = "perspective"
    meta: dict = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        for name in ("eye", "view", "up", "background"):
            object.__setattr__(self, name, np.asarray(getattr(self, name), dtype=float).reshape(3))
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))
        object.__setattr__(self, "fov_deg", float(self.fov_deg))
        for name in ("shapes", "lights", "materials", "textures"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def aspect(self) -> float:
        return self.width / self.height

    def material(self, index: int | None) -> Material:
        """Resolve a shape's material index against the scene pool."""

        if index is None:
            raise MissingMaterialError("Shape has no material bound")
        if not 0 <= int(index) < len(self.materials):
            raise MissingMaterialError(f"Material index {index} not in pool of {len(self.materials)}")
        return self.materials[int(index)]

    def validate(self) -> "Scene":
        """Check camera and image parameters; return self for chaining."""

        if is_zero(self.view):
            raise ValueError("Null view vector")
        if is_zero(self.up):
            raise ValueError("Null up vector")
        if is_parallel(self.view, self.up):
            raise ValueError("Up vector parallel to view vector")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid image size ({self.width}, {self.height})")
        if not MIN_FOV < self.fov_deg < MAX_FOV:
            raise ValueError(f"Impossible field of view {self.fov_deg}")
        if self.projection not in PROJECTIONS:
            raise ValueError(f"Unknown projection {self.projection!r}")
        for i, shape in enumerate(self.shapes):
            try:
                self.material(shape.material)
            except MissingMaterialError as exc:
                raise MissingMaterialError(f"Shape {i}: {exc}") from exc
        return self

    def summary(self) -> dict:
        """JSON-friendly description used for archive metadata."""

        kinds: dict[str, int] = {}
        for s in self.shapes:
            kinds[type(s).__name__] = kinds.get(type(s).__name__, 0) + 1
        return {
            "eye": self.eye.tolist(),
            "view": self.view.tolist(),
            "up": self.up.tolist(),
            "fov_deg": self.fov_deg,
            "width": self.width,
            "height": self.height,
            "background": self.background.tolist(),
            "projection": self.projection,
            "shapes": kinds,
            "lights": [type(lt).__name__ for lt in self.lights],
            "materials": len(self.materials),
            "textures": len(self.textures),
        }
