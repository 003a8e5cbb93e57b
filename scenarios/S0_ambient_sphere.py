"""S0 ambient-only sphere: flat material colour on the background, no lights."""

from __future__ import annotations

from typing import Any

import numpy as np

from rt_core.image import Image
from rt_core.material import Material
from rt_core.scene import Scene
from rt_core.shapes import Sphere
from rt_core.tracer import TraceConfig
from scenarios.common import default_camera, render_case

SPHERE_COLOR = (0.8, 0.2, 0.2)
BACKGROUND = (0.0, 0.0, 0.0)


def build_scene(radius: float = 1.0, width: int = 32, height: int = 32) -> Scene:
    # ambient = 1 with no diffuse/specular terms renders the material colour exactly.
    mtl = Material(color=np.array(SPHERE_COLOR), ambient=1.0, diffuse=0.0, specular=0.0, exponent=1)
    return Scene(
        **default_camera(eye=(0.0, 0.0, 4.0), view=(0.0, 0.0, -1.0), fov_deg=60.0, width=width, height=height, background=BACKGROUND),
        shapes=(Sphere(center=np.zeros(3), radius=radius, material=0),),
        materials=(mtl,),
    )


def build_sweep_params() -> list[dict[str, Any]]:
    return [{"radius": r} for r in [0.5, 1.0, 1.5]]


def run_case(params: dict[str, Any], config: TraceConfig | None = None, workers: int = 1, **size: int) -> Image:
    return render_case(build_scene(radius=params["radius"], **size), config, workers)
