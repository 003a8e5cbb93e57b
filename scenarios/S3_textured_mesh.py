"""S3 textured, normal-interpolated quad mesh next to a texture-mapped sphere."""

from __future__ import annotations

from typing import Any

import numpy as np

from rt_core.image import Image
from rt_core.lights import PointLight
from rt_core.material import Material
from rt_core.scene import Scene
from rt_core.shapes import Sphere
from rt_core.tracer import TraceConfig
from scenarios.common import checker_texture, default_camera, quad_faces, quad_mesh, render_case

QUAD = [[-2.0, -1.0, -1.0], [0.5, -1.0, -1.0], [0.5, 1.5, -1.0], [-2.0, 1.5, -1.0]]


def build_scene(cells: int = 4, bend: float = 0.0, width: int = 48, height: int = 36) -> Scene:
    """``bend`` tilts the corner normals outward so shading varies across the flat quad."""

    normals = np.array([[-bend, -bend, 1.0], [bend, -bend, 1.0], [bend, bend, 1.0], [-bend, bend, 1.0]])
    mesh = quad_mesh(QUAD, normals=normals, with_texcoords=True)
    tex = checker_texture(size=32, cells=cells)
    stripes = checker_texture(size=32, cells=2, dark=(200, 40, 40), light=(240, 220, 60))
    materials = (
        Material(color=np.ones(3), ambient=0.3, diffuse=0.7, specular=0.1, exponent=10, texture=0),
        Material(color=np.ones(3), ambient=0.3, diffuse=0.6, specular=0.3, exponent=30, texture=1),
    )
    shapes = [*quad_faces(mesh, material=0, normals=True, texcoords=True)]
    shapes.append(Sphere(center=np.array([1.4, 0.0, 0.0]), radius=0.8, material=1))
    return Scene(
        **default_camera(eye=(0.0, 0.3, 5.0), view=(0.0, 0.0, -1.0), width=width, height=height),
        shapes=tuple(shapes),
        lights=(PointLight(position=np.array([0.0, 2.0, 5.0]), color=np.ones(3)),),
        materials=materials,
        textures=(tex, stripes),
        mesh=mesh,
    )


def build_sweep_params() -> list[dict[str, Any]]:
    return [{"cells": c, "bend": b} for c in [2, 8] for b in [0.0, 0.4]]


def run_case(params: dict[str, Any], config: TraceConfig | None = None, workers: int = 1, **size: int) -> Image:
    return render_case(build_scene(cells=params["cells"], bend=params["bend"], **size), config, workers)
