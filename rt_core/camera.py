"""Viewing plane construction and primary-ray generation.

Example:
    >>> import numpy as np
    >>> from rt_core.camera import build_view_plane
    >>> from rt_core.scene import Scene
    >>> sc = Scene(np.zeros(3), np.array([0.0, 0, -1]), np.array([0.0, 1, 0]), 90.0, 3, 3, np.zeros(3))
    >>> vp = build_view_plane(sc)
    >>> np.allclose(vp.target(1, 1), [0.0, 0.0, -1.0]), np.allclose(vp.origin, [-1.0, 1.0, -1.0])
    (True, True)
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from rt_core.errors import GeometryError
from rt_core.rays import Ray
from rt_core.scene import Scene
from rt_core.vector import Vec3, cross, is_zero, normalize


@dataclass(frozen=True)
class ViewPlane:
    """Image rectangle in world space; ``origin`` is its upper-left corner."""

    eye: Vec3
    origin: Vec3
    center: Vec3
    u: Vec3
    v: Vec3
    width: float
    height: float
    du: Vec3
    dv: Vec3
    forward: Vec3
    parallel: bool = False

    def target(self, x: int, y: int) -> Vec3:
        # Computed directly per pixel so results do not depend on visiting order.
        return self.origin + x * self.du - y * self.dv

    def primary_ray(self, x: int, y: int) -> Ray:
        target = self.target(x, y)
        if self.parallel:
            return Ray(origin=target, direction=self.forward)
        return Ray(origin=self.eye, direction=normalize(target - self.eye))


def build_view_plane(scene: Scene, view_distance: float = 1.0) -> ViewPlane:
    """Build the orthonormal image-plane basis and per-pixel steps for ``scene``."""

    parallel = scene.projection == "parallel"
    distance = 0.0 if parallel else float(view_distance)

    fov = math.radians(scene.fov_deg)
    height = 2.0 * math.tan(fov / 2.0)
    width = height * scene.aspect

    u = normalize(cross(scene.view, scene.up))
    if is_zero(u):
        raise GeometryError(f"Null u vector from view {scene.view.tolist()} and up {scene.up.tolist()}")
    v = normalize(cross(u, scene.view))
    if is_zero(v):
        raise GeometryError(f"Null v vector from view {scene.view.tolist()}")

    forward = normalize(scene.view)
    center = scene.eye + distance * forward
    origin = center - (width / 2.0) * u + (height / 2.0) * v
    du = u * (width / max(scene.width - 1, 1))
    dv = v * (height / max(scene.height - 1, 1))
    return ViewPlane(
        eye=np.array(scene.eye, dtype=float),
        origin=origin,
        center=center,
        u=u,
        v=v,
        width=width,
        height=height,
        du=du,
        dv=dv,
        forward=forward,
        parallel=parallel,
    )
