"""Recursive Whitted-style ray tracer: casting, shadows, Fresnel reflection/refraction.

``shade`` and ``reflection_contribution`` are mutually recursive and bounded
by ``TraceConfig.max_depth``.

Example:
    >>> import numpy as np
    >>> from rt_core.material import Material
    >>> from rt_core.rays import Ray
    >>> from rt_core.scene import Scene
    >>> from rt_core.shapes import Sphere
    >>> from rt_core.tracer import cast
    >>> sc = Scene(np.array([0.0, 0, 4]), np.array([0.0, 0, -1]), np.array([0.0, 1, 0]), 60.0, 8, 8,
    ...            np.zeros(3), shapes=(Sphere(np.zeros(3), 1.0, material=0),), materials=(Material(),))
    >>> hit = cast(Ray(sc.eye, sc.view), sc)
    >>> hit.distance, hit.material is sc.materials[0]
    (3.0, True)
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from rt_core.geometry import reflect_direction, refract_direction
from rt_core.lights import Light, blinn_phong, light_direction
from rt_core.logger import get_logger
from rt_core.material import Material, object_color
from rt_core.rays import Collision, Ray
from rt_core.scene import Scene
from rt_core.shapes import Shape
from rt_core.vector import Vec3, clamp_color, dot


logger = get_logger(__name__)


@dataclass(frozen=True)
class TraceConfig:
    collision_threshold: float = 1e-4  # hits closer than this to a ray origin are self-hits
    shadow_threshold: float = 1e-3  # lights dimmer than this after shadowing are skipped
    initial_refraction: float = 1.0
    view_distance: float = 1.0
    max_depth: int = 5

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError("max_depth must be non-negative")
        if self.collision_threshold < 0.0:
            raise ValueError("collision_threshold must be non-negative")


DEFAULT_CONFIG = TraceConfig()


def _nearest(ray: Ray, scene: Scene, config: TraceConfig, skip: Shape | None = None) -> tuple[Collision, Shape | None]:
    closest = Collision.none()
    winner = None
    for shape in scene.shapes:
        # Every shape in the scan must carry a material, hit or not.
        scene.material(shape.material)
        if shape is skip:
            continue
        current = shape.collide(ray, config.collision_threshold)
        if not current.hit or current.distance < config.collision_threshold:
            continue
        if winner is None or current.distance < closest.distance:
            closest = current
            winner = shape
    return closest, winner


def cast(ray: Ray, scene: Scene, config: TraceConfig = DEFAULT_CONFIG) -> Collision:
    """Nearest collision of ``ray`` with any scene shape beyond the self-hit threshold."""

    closest, winner = _nearest(ray, scene, config)
    if winner is None:
        return closest
    return closest.with_material(scene.material(winner.material))


def shadow_factor(collision: Collision, light: Light, scene: Scene, config: TraceConfig = DEFAULT_CONFIG) -> float:
    """Fraction of ``light`` reaching the collision point through (semi-)transparent occluders.

    Each occluder strictly between the point and the light multiplies the
    factor by its transparency ``1 - opacity``; the walk then continues from
    the occluder toward the same light, ignoring the occluder itself so a
    closed shape is counted once.
    """

    factor = 1.0
    point = collision.point
    occluder = None
    max_hops = 2 * len(scene.shapes) + 1
    for _ in range(max_hops):
        to_light, distance = light_direction(light, point, check_cone=False)
        blocker, occluder = _nearest(Ray(point, to_light), scene, config, skip=occluder)
        if occluder is None or not config.collision_threshold < blocker.distance < distance:
            return factor
        factor *= 1.0 - float(scene.material(occluder.material).opacity)
        if factor <= 0.0:
            return 0.0
        point = blocker.point
    logger.warning("Shadow ray exceeded %d occluders; scene geometry is degenerate", max_hops)
    return factor


def fresnel_zero(material: Material, ambient_index: float) -> float:
    """Normal-incidence reflectance F0 for the material seen from the ambient medium."""

    n = float(material.refraction)
    if material.is_opaque:
        f0 = (n - 1.0) / (n + 1.0)
    else:
        f0 = (n - ambient_index) / (n + ambient_index)
    return f0 * f0


def fresnel_reflectance(cos_theta: float, f0: float) -> float:
    """Schlick's approximation F = F0 + (1 - F0)(1 - cos)^5."""

    c = min(1.0, max(0.0, float(cos_theta)))
    return f0 + (1.0 - f0) * (1.0 - c) ** 5


def reflection_contribution(
    collision: Collision,
    scene: Scene,
    ambient_index: float,
    depth: int,
    config: TraceConfig = DEFAULT_CONFIG,
) -> Vec3:
    """Fresnel-weighted light arriving along the mirror and refracted directions."""

    if depth >= config.max_depth:
        return np.zeros(3, dtype=float)

    # Face the normal toward the viewer so every cosine below is non-negative.
    normal = collision.normal
    if dot(normal, collision.incident) < 0.0:
        normal = -normal
    material = collision.material
    cos_i = min(1.0, max(0.0, dot(normal, collision.incident)))
    fresnel = fresnel_reflectance(cos_i, fresnel_zero(material, ambient_index))

    color = np.zeros(3, dtype=float)
    mirrored = cast(Ray(collision.point, reflect_direction(collision.incident, normal)), scene, config)
    if mirrored.hit:
        color = clamp_color(shade(mirrored, scene, ambient_index, depth + 1, config) * fresnel)

    if material.is_opaque:
        return color

    direction = refract_direction(collision.incident, normal, ambient_index / float(material.refraction))
    if direction is None:
        # Total internal reflection: nothing is transmitted.
        return color
    through = cast(Ray(collision.point, direction), scene, config)
    transmitted = shade(through, scene, float(material.refraction), depth + 1, config)
    weight = (1.0 - fresnel) * (1.0 - float(material.opacity))
    color = color + clamp_color(transmitted * weight)
    return clamp_color(color)


def local_color(collision: Collision, scene: Scene, config: TraceConfig = DEFAULT_CONFIG) -> Vec3:
    """Ambient plus shadowed Blinn-Phong terms for every light, clamped."""

    base = object_color(collision, scene.textures)
    color = base * float(collision.material.ambient)
    for light in scene.lights:
        shadows = shadow_factor(collision, light, scene, config)
        if shadows < config.shadow_threshold:
            continue
        lit = blinn_phong(light, collision, base)
        if lit is None:
            continue
        color = color + lit * shadows
    return clamp_color(color)


def shade(
    collision: Collision,
    scene: Scene,
    ambient_index: float | None = None,
    depth: int = 0,
    config: TraceConfig = DEFAULT_CONFIG,
) -> Vec3:
    """Final colour seen along the ray that produced ``collision``."""

    if not collision.hit:
        return np.array(scene.background, dtype=float)
    if ambient_index is None:
        ambient_index = config.initial_refraction
    color = local_color(collision, scene, config)
    if depth < config.max_depth:
        color = clamp_color(color + reflection_contribution(collision, scene, ambient_index, depth, config))
    return color


def trace(ray: Ray, scene: Scene, config: TraceConfig = DEFAULT_CONFIG) -> Vec3:
    """Cast a primary ray and shade whatever it hits (background on a miss)."""

    return shade(cast(ray, scene, config), scene, config.initial_refraction, 0, config)
