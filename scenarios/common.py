"""Shared scenario helpers: camera defaults, stock materials, quads and textures."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from rt_core.image import Image
from rt_core.mesh import Face, Mesh, VertexRef
from rt_core.renderer import render
from rt_core.scene import Scene
from rt_core.tracer import TraceConfig

DEFAULT_WIDTH = 64
DEFAULT_HEIGHT = 48


def default_camera(
    eye=(0.0, 1.0, 6.0),
    view=(0.0, -0.15, -1.0),
    up=(0.0, 1.0, 0.0),
    fov_deg: float = 45.0,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    background=(0.1, 0.1, 0.15),
) -> dict[str, Any]:
    """Keyword arguments for ``Scene`` describing a camera looking down -z at the origin."""

    return {
        "eye": np.asarray(eye, dtype=float),
        "view": np.asarray(view, dtype=float),
        "up": np.asarray(up, dtype=float),
        "fov_deg": float(fov_deg),
        "width": int(width),
        "height": int(height),
        "background": np.asarray(background, dtype=float),
    }


def floor_plane_args(y: float = -1.0) -> dict[str, Any]:
    # u x v points up (+y) so the floor faces the camera.
    return {"origin": np.array([0.0, y, 0.0]), "u": np.array([0.0, 0.0, 1.0]), "v": np.array([1.0, 0.0, 0.0])}


def quad_mesh(
    corners: Sequence[Sequence[float]],
    normals: Sequence[Sequence[float]] | None = None,
    with_texcoords: bool = False,
) -> Mesh:
    """Mesh holding one quad (corners counter-clockwise) as vertices 1..4."""

    texcoords = [[0.0, 1.0], [1.0, 1.0], [1.0, 0.0], [0.0, 0.0]] if with_texcoords else None
    return Mesh(vertices=corners, normals=normals, texcoords=texcoords)


def stack_meshes(meshes: Sequence[Mesh]) -> tuple[Mesh, list[int]]:
    """Concatenate meshes; returns the merged mesh and each input's 1-based index offset."""

    offsets, v_off = [], 0
    for m in meshes:
        offsets.append(v_off)
        v_off += len(m.vertices)
    merged = Mesh(
        vertices=np.concatenate([m.vertices for m in meshes]) if meshes else None,
        normals=np.concatenate([m.normals for m in meshes]) if meshes else None,
        texcoords=np.concatenate([m.texcoords for m in meshes]) if meshes else None,
    )
    return merged, offsets


def quad_faces(mesh: Mesh, material: int, offset: int = 0, normals: bool = False, texcoords: bool = False) -> list[Face]:
    """Two triangles (1,2,3) and (1,3,4) of the quad stored at ``offset``."""

    def ref(i: int) -> VertexRef:
        k = offset + i
        return VertexRef(vertex=k, normal=k if normals else 0, texcoord=k if texcoords else 0)

    return [
        Face(mesh=mesh, corners=(ref(1), ref(2), ref(3)), material=material),
        Face(mesh=mesh, corners=(ref(1), ref(3), ref(4)), material=material),
    ]


def checker_texture(size: int = 16, cells: int = 4, dark=(30, 30, 30), light=(230, 230, 230)) -> Image:
    idx = (np.arange(size) * cells) // size
    mask = (idx[:, None] + idx[None, :]) % 2 == 0
    px = np.where(mask[..., None], np.asarray(light, dtype=np.uint8), np.asarray(dark, dtype=np.uint8))
    return Image(px.astype(np.uint8))


def render_case(scene: Scene, config: TraceConfig | None = None, workers: int = 1) -> Image:
    return render(scene.validate(), config=config, workers=workers)
