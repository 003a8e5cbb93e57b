"""S1 stacked translucent panels between a point light and an opaque floor.

Every panel lets ``1 - opacity`` of the light through, so the floor under a
stack of ``n`` panels of opacity 0.5 receives ``0.5 ** n`` of the direct light.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from rt_core.geometry import Plane
from rt_core.image import Image
from rt_core.lights import PointLight
from rt_core.material import Material
from rt_core.scene import Scene
from rt_core.tracer import TraceConfig
from scenarios.common import default_camera, floor_plane_args, quad_faces, quad_mesh, render_case, stack_meshes

LIGHT_HEIGHT = 4.0
PANEL_HALF = 0.75


def panel_corners(y: float, half: float = PANEL_HALF) -> list[list[float]]:
    # Counter-clockwise seen from above, so the panel normal is +y.
    return [[-half, y, half], [half, y, half], [half, y, -half], [-half, y, -half]]


def build_scene(n_panels: int = 2, opacity: float = 0.5, width: int = 48, height: int = 36) -> Scene:
    floor = Material.matte([0.9, 0.9, 0.9])
    panel = Material(color=np.array([0.2, 0.4, 0.9]), ambient=0.2, diffuse=0.6, specular=0.1, opacity=opacity)

    heights = [0.5 + 0.8 * k for k in range(int(n_panels))]
    shapes: list = [Plane(material=0, **floor_plane_args(-1.0))]
    mesh = None
    if heights:
        mesh, offsets = stack_meshes([quad_mesh(panel_corners(y)) for y in heights])
        for off in offsets:
            shapes.extend(quad_faces(mesh, material=1, offset=off))
    return Scene(
        **default_camera(eye=(0.0, 2.0, 7.0), view=(0.0, -0.4, -1.0), width=width, height=height),
        shapes=tuple(shapes),
        lights=(PointLight(position=np.array([0.0, LIGHT_HEIGHT, 0.0]), color=np.ones(3)),),
        materials=(floor, panel),
        mesh=mesh,
    )


def build_sweep_params() -> list[dict[str, Any]]:
    return [{"n_panels": n, "opacity": 0.5} for n in [0, 1, 2]] + [{"n_panels": 1, "opacity": 1.0}]


def run_case(params: dict[str, Any], config: TraceConfig | None = None, workers: int = 1, **size: int) -> Image:
    return render_case(build_scene(n_panels=params["n_panels"], opacity=params["opacity"], **size), config, workers)
