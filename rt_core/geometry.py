"""Plane geometry shared by the infinite-plane shape and triangle faces.

Example:
    >>> import numpy as np
    >>> from rt_core.geometry import Plane
    >>> from rt_core.rays import Ray
    >>> pl = Plane(origin=np.zeros(3), u=np.array([1.0, 0.0, 0.0]), v=np.array([0.0, 1.0, 0.0]), material=0)
    >>> hit = pl.collide(Ray(np.array([0.0, 0.0, 2.0]), np.array([0.0, 0.0, -1.0])))
    >>> hit.distance, hit.normal.tolist()
    (2.0, [0.0, 0.0, 1.0])
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from rt_core.errors import GeometryError
from rt_core.rays import Collision, CollisionKind, Ray, surface_hit
from rt_core.vector import Vec3, cross, dot, is_zero, normalize

PLANE_EPS = 1e-12


def unit_direction(ray: Ray) -> Vec3:
    """Normalized ray direction; a zero direction is a geometry error."""

    if is_zero(ray.direction):
        raise GeometryError("Ray direction is the null vector")
    return normalize(ray.direction)


@dataclass(frozen=True)
class Plane:
    """Infinite plane through ``origin`` spanned by ``u`` and ``v``.

    ``u`` and ``v`` need not be normalized or orthogonal, only non-parallel.
    """

    origin: Vec3
    u: Vec3
    v: Vec3
    material: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", np.asarray(self.origin, dtype=float))
        object.__setattr__(self, "u", np.asarray(self.u, dtype=float))
        object.__setattr__(self, "v", np.asarray(self.v, dtype=float))

    def unit_normal(self) -> Vec3:
        n = normalize(cross(self.u, self.v))
        if is_zero(n):
            raise GeometryError("Plane basis vectors are parallel or zero")
        return n

    def collide(self, ray: Ray, t_min: float = 0.0) -> Collision:
        unit = unit_direction(ray)
        normal = self.unit_normal()
        offset = self.origin - ray.origin
        denom = dot(normal, unit)
        if abs(denom) <= PLANE_EPS:
            if abs(dot(offset, normal)) > PLANE_EPS:
                # Parallel to the plane and off it.
                return Collision.none()
            t = 0.0
        else:
            t = dot(normal, offset) / denom
        if t < t_min:
            return Collision.none()
        kind = CollisionKind.INSIDE if t == 0.0 else CollisionKind.SURFACE
        return surface_hit(kind, ray, unit, t, normal)


def reflect_direction(incident: Vec3, normal: Vec3) -> Vec3:
    """Mirror the unit ``incident`` (pointing away from the surface) about ``normal``."""

    return 2.0 * dot(normal, incident) * np.asarray(normal, dtype=float) - np.asarray(incident, dtype=float)


def refract_direction(incident: Vec3, normal: Vec3, ratio: float) -> Vec3 | None:
    """Snell refraction of ``incident`` through a surface with ``normal`` facing it.

    ``ratio`` is n_outside / n_inside. Returns None on total internal reflection.
    """

    cos_i = dot(normal, incident)
    tir = 1.0 - (ratio * ratio) * (1.0 - cos_i * cos_i)
    if tir < 0.0:
        return None
    n = np.asarray(normal, dtype=float)
    return -np.sqrt(tir) * n + ratio * (cos_i * n - np.asarray(incident, dtype=float))


def triangle_area(a: Vec3, b: Vec3, c: Vec3) -> float:
    e = cross(np.asarray(b, dtype=float) - a, np.asarray(c, dtype=float) - a)
    return 0.5 * float(np.sqrt(dot(e, e)))
