"""S4 spotlight cone on a floor with a small occluding sphere."""

from __future__ import annotations

from typing import Any

import numpy as np

from rt_core.geometry import Plane
from rt_core.image import Image
from rt_core.lights import SpotLight
from rt_core.material import Material
from rt_core.scene import Scene
from rt_core.shapes import Ellipsoid
from rt_core.tracer import TraceConfig
from scenarios.common import default_camera, floor_plane_args, render_case


def build_scene(angle_deg: float = 20.0, width: int = 48, height: int = 36) -> Scene:
    shapes = (
        Plane(material=0, **floor_plane_args(-1.0)),
        Ellipsoid(center=np.array([0.0, -0.5, 0.0]), dimension=np.array([0.6, 0.4, 0.6]), material=1),
    )
    spot = SpotLight(
        position=np.array([0.0, 4.0, 0.0]),
        direction=np.array([0.0, -1.0, 0.0]),
        angle_deg=angle_deg,
        color=np.ones(3),
    )
    return Scene(
        **default_camera(eye=(0.0, 3.0, 6.0), view=(0.0, -0.6, -1.0), width=width, height=height),
        shapes=shapes,
        lights=(spot,),
        materials=(Material.matte([0.9, 0.9, 0.8], ambient=0.05), Material(color=np.array([0.2, 0.8, 0.3]))),
    )


def build_sweep_params() -> list[dict[str, Any]]:
    return [{"angle_deg": a} for a in [10.0, 20.0, 40.0]]


def run_case(params: dict[str, Any], config: TraceConfig | None = None, workers: int = 1, **size: int) -> Image:
    return render_case(build_scene(angle_deg=params["angle_deg"], **size), config, workers)
