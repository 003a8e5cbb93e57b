"""Quadric primitives and the closed set of renderable shapes.

Every shape exposes ``collide(ray, t_min=0.0) -> Collision`` and a ``material``
index into the scene's material pool. Hits nearer than ``t_min`` are skipped,
so a ray leaving a quadric surface finds the far side instead of itself.

Example:
    >>> import numpy as np
    >>> from rt_core.rays import Ray
    >>> from rt_core.shapes import Sphere
    >>> s = Sphere(center=np.zeros(3), radius=1.0, material=0)
    >>> hit = s.collide(Ray(np.array([0.0, 0.0, 4.0]), np.array([0.0, 0.0, -1.0])))
    >>> hit.distance, hit.point.tolist(), hit.normal.tolist()
    (3.0, [0.0, 0.0, 1.0], [0.0, 0.0, 1.0])
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

import numpy as np
from numpy.typing import NDArray

from rt_core.errors import GeometryError
from rt_core.geometry import Plane, unit_direction
from rt_core.mesh import Face
from rt_core.rays import Collision, CollisionKind, Ray, surface_hit
from rt_core.vector import Vec3, dot, magnitude, normalize


def _nearest_root(a: float, b: float, c: float, t_min: float = 0.0) -> float | None:
    """Smallest root of a*t^2 + b*t + c = 0 that is >= ``t_min``, or None."""

    disc = b * b - 4.0 * a * c
    if disc < 0.0:
        return None
    root = math.sqrt(disc)
    t_near = (-b - root) / (2.0 * a)
    t_far = (-b + root) / (2.0 * a)
    if t_near >= t_min:
        return t_near
    if t_far >= t_min:
        return t_far
    return None


def sphere_texcoord(normal: Vec3) -> NDArray[np.float64]:
    u = math.atan2(float(normal[0]), float(normal[2])) / (2.0 * math.pi)
    if u < 0.0:
        u += 1.0
    v = math.acos(min(1.0, max(-1.0, float(normal[1])))) / math.pi
    return np.array([u, v], dtype=float)


@dataclass(frozen=True)
class Sphere:
    center: Vec3
    radius: float
    material: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", np.asarray(self.center, dtype=float))

    def collide(self, ray: Ray, t_min: float = 0.0) -> Collision:
        unit = unit_direction(ray)
        if self.radius <= 0.0:
            raise GeometryError(f"Sphere radius must be positive, got {self.radius}")
        oc = ray.origin - self.center
        b = 2.0 * dot(unit, oc)
        c = dot(oc, oc) - self.radius * self.radius
        t = _nearest_root(1.0, b, c, t_min)
        if t is None:
            return Collision.none()
        kind = CollisionKind.INSIDE if magnitude(oc) <= self.radius else CollisionKind.SURFACE
        point = ray.origin + t * unit
        normal = normalize(point - self.center)
        return surface_hit(kind, ray, unit, t, normal, texcoord=sphere_texcoord(normal))


@dataclass(frozen=True)
class Ellipsoid:
    """Axis-aligned ellipsoid with semi-axes ``dimension``."""

    center: Vec3
    dimension: Vec3
    material: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", np.asarray(self.center, dtype=float))
        object.__setattr__(self, "dimension", np.asarray(self.dimension, dtype=float))

    def collide(self, ray: Ray, t_min: float = 0.0) -> Collision:
        unit = unit_direction(ray)
        if np.any(self.dimension <= 0.0):
            raise GeometryError(f"Ellipsoid axes must be positive, got {self.dimension.tolist()}")
        inv2 = 1.0 / (self.dimension * self.dimension)
        oc = ray.origin - self.center
        a = float(np.sum(unit * unit * inv2))
        b = float(np.sum(2.0 * oc * unit * inv2))
        c = float(np.sum(oc * oc * inv2)) - 1.0
        t = _nearest_root(a, b, c, t_min)
        if t is None:
            return Collision.none()
        kind = CollisionKind.INSIDE if c <= 0.0 else CollisionKind.SURFACE
        point = ray.origin + t * unit
        normal = normalize((point - self.center) * 2.0 * inv2)
        return surface_hit(kind, ray, unit, t, normal)


Shape = Union[Sphere, Ellipsoid, Plane, Face]
SHAPE_TYPES = (Sphere, Ellipsoid, Plane, Face)


def collide(shape: Shape, ray: Ray, t_min: float = 0.0) -> Collision:
    """Dispatch ``ray`` to the shape's own intersection routine."""

    if not isinstance(shape, SHAPE_TYPES):
        raise GeometryError(f"Unsupported shape type {type(shape).__name__}")
    return shape.collide(ray, t_min)
