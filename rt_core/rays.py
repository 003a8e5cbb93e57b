"""Ray and collision data structures.

Example:
    >>> import numpy as np
    >>> from rt_core.rays import Collision, CollisionKind, Ray
    >>> r = Ray(origin=np.array([0.0, 0.0, 4.0]), direction=np.array([0.0, 0.0, -2.0]))
    >>> r.direction.tolist()
    [0.0, 0.0, -2.0]
    >>> Collision.none().kind is CollisionKind.NONE
    True
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from rt_core.material import Material
from rt_core.vector import Vec3, negate


class CollisionKind(Enum):
    NONE = 0
    INSIDE = 1
    SURFACE = 2


@dataclass(frozen=True)
class Ray:
    """Half-line from ``origin``; ``direction`` need not be normalized."""

    origin: Vec3
    direction: Vec3

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", np.asarray(self.origin, dtype=float))
        object.__setattr__(self, "direction", np.asarray(self.direction, dtype=float))


@dataclass(frozen=True)
class Collision:
    """Result of intersecting a ray with one shape.

    When ``kind`` is ``NONE`` every other field is meaningless and must not be
    read. ``incident`` is the unit vector from the hit back toward the ray
    origin. ``material`` is filled in by the caster, not by the shapes.
    """

    kind: CollisionKind
    point: Vec3 | None = None
    distance: float = float("inf")
    normal: Vec3 | None = None
    incident: Vec3 | None = None
    material: Material | None = None
    texcoord: NDArray[np.float64] | None = None

    @staticmethod
    def none() -> "Collision":
        return Collision(kind=CollisionKind.NONE)

    @property
    def hit(self) -> bool:
        return self.kind is not CollisionKind.NONE

    def with_material(self, material: Material) -> "Collision":
        return replace(self, material=material)


def surface_hit(
    kind: CollisionKind,
    ray: Ray,
    unit: Vec3,
    t: float,
    normal: Vec3,
    texcoord: NDArray[np.float64] | None = None,
) -> Collision:
    """Build a hit record at distance ``t`` along the normalized direction ``unit``."""

    return Collision(
        kind=kind,
        point=ray.origin + t * unit,
        distance=float(t),
        normal=normal,
        incident=negate(unit),
        texcoord=texcoord,
    )
