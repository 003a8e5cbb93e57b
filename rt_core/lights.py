"""Light sources and Blinn-Phong local shading.

Example:
    >>> import numpy as np
    >>> from rt_core.lights import DirectionalLight, light_direction
    >>> lt = DirectionalLight(direction=np.array([0.0, -2.0, 0.0]), color=np.ones(3))
    >>> to_light, dist = light_direction(lt, np.zeros(3))
    >>> bool(np.allclose(to_light, [0.0, 1.0, 0.0])), dist
    (True, inf)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

import numpy as np

from rt_core.rays import Collision
from rt_core.vector import Vec3, angle_between, clamp_color, dot, magnitude, normalize


def _vec(value) -> Vec3:
    return np.asarray(value, dtype=float).reshape(3)


@dataclass(frozen=True)
class PointLight:
    position: Vec3
    color: Vec3

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vec(self.position))
        object.__setattr__(self, "color", _vec(self.color))


@dataclass(frozen=True)
class DirectionalLight:
    """Light arriving everywhere along ``direction`` (pointing away from the source)."""

    direction: Vec3
    color: Vec3

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", _vec(self.direction))
        object.__setattr__(self, "color", _vec(self.color))


@dataclass(frozen=True)
class SpotLight:
    """Point light restricted to a cone of half-angle ``angle_deg`` around ``direction``."""

    position: Vec3
    direction: Vec3
    angle_deg: float
    color: Vec3

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vec(self.position))
        object.__setattr__(self, "direction", _vec(self.direction))
        object.__setattr__(self, "color", _vec(self.color))


Light = Union[PointLight, DirectionalLight, SpotLight]


def in_spot_cone(light: SpotLight, to_light: Vec3) -> bool:
    angle = math.degrees(angle_between(-np.asarray(to_light, dtype=float), light.direction))
    return angle <= float(light.angle_deg)


def light_direction(light: Light, point: Vec3, check_cone: bool = True) -> tuple[Vec3, float] | None:
    """Return (unit vector toward the light, distance to it).

    Directional lights are infinitely far away. For spotlights the result is
    None when ``point`` lies outside the cone, unless ``check_cone`` is False.
    """

    if isinstance(light, DirectionalLight):
        return normalize(-light.direction), math.inf
    if isinstance(light, (PointLight, SpotLight)):
        offset = light.position - np.asarray(point, dtype=float)
        to_light = normalize(offset)
        if check_cone and isinstance(light, SpotLight) and not in_spot_cone(light, to_light):
            return None
        return to_light, magnitude(offset)
    raise TypeError(f"Unknown light type {type(light).__name__}")


def blinn_phong(light: Light, collision: Collision, object_color: Vec3) -> Vec3 | None:
    """Diffuse plus specular contribution of ``light`` at ``collision`` (no ambient).

    Returns None when the collision lies outside a spotlight cone.
    """

    lit = light_direction(light, collision.point)
    if lit is None:
        return None
    to_light, _ = lit
    material = collision.material
    halfway = normalize(to_light + collision.incident)

    color = np.zeros(3, dtype=float)
    diffuse = max(0.0, dot(collision.normal, to_light)) * material.diffuse
    if diffuse > 0.0:
        color += diffuse * np.asarray(object_color, dtype=float)
    facing = dot(halfway, collision.normal)
    specular = facing**material.exponent * material.specular if facing > 0.0 else 0.0
    if specular > 0.0:
        color += specular * material.highlight
    return clamp_color(color) * light.color
