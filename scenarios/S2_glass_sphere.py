"""S2 glass sphere over a matte floor in front of a checkered ball: Fresnel reflection plus refraction."""

from __future__ import annotations

from typing import Any

import numpy as np

from rt_core.geometry import Plane
from rt_core.image import Image
from rt_core.lights import DirectionalLight, PointLight
from rt_core.material import Material
from rt_core.scene import Scene
from rt_core.shapes import Sphere
from rt_core.tracer import TraceConfig
from scenarios.common import checker_texture, default_camera, floor_plane_args, render_case


def build_scene(refraction: float = 1.5, opacity: float = 0.1, width: int = 48, height: int = 36) -> Scene:
    floor = Material.matte([0.9, 0.9, 0.9])
    glass = Material.glass(refraction=refraction, opacity=opacity)
    backdrop = Material.matte([0.3, 0.5, 0.8]).with_texture(0)
    shapes = (
        Plane(material=0, **floor_plane_args(-1.0)),
        Sphere(center=np.array([0.0, 0.0, 0.0]), radius=1.0, material=1),
        Sphere(center=np.array([1.8, -0.4, -2.5]), radius=0.6, material=2),
    )
    lights = (
        PointLight(position=np.array([-3.0, 5.0, 4.0]), color=np.array([0.9, 0.9, 0.9])),
        DirectionalLight(direction=np.array([0.5, -1.0, -0.5]), color=np.array([0.3, 0.3, 0.3])),
    )
    return Scene(
        **default_camera(width=width, height=height),
        shapes=shapes,
        lights=lights,
        materials=(floor, glass, backdrop),
        textures=(checker_texture(size=32, cells=8),),
    )


def build_sweep_params() -> list[dict[str, Any]]:
    return [{"refraction": n, "opacity": 0.1} for n in [1.0, 1.33, 1.5]]


def run_case(params: dict[str, Any], config: TraceConfig | None = None, workers: int = 1, **size: int) -> Image:
    scene = build_scene(refraction=params["refraction"], opacity=params["opacity"], **size)
    return render_case(scene, config, workers)
