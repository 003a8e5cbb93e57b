"""Triangle meshes: a shared vertex/normal/texcoord pool plus faces indexing it.

Indices are 1-based as in Wavefront OBJ; 0 means "absent" for normals and
texture coordinates.

Example:
    >>> import numpy as np
    >>> from rt_core.mesh import Face, Mesh, VertexRef
    >>> mesh = Mesh(vertices=np.array([[0.0, 0, 0], [1, 0, 0], [0, 1, 0]]))
    >>> face = Face(mesh=mesh, corners=(VertexRef(1), VertexRef(2), VertexRef(3)), material=0)
    >>> w = face.barycentric(np.array([0.25, 0.25, 0.0]))
    >>> round(float(w.sum()), 9)
    1.0
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from rt_core.errors import MeshIndexError
from rt_core.geometry import Plane, triangle_area
from rt_core.rays import Collision, Ray
from rt_core.vector import Vec3, normalize

N_VERTICES = 3
NO_NORMAL = 0
NO_TEXTURE = 0
# Sub-triangle areas may exceed the face area by this much and still count as inside.
CONTAINMENT_SLACK = 1e-4


def _rows(values, width: int) -> NDArray[np.float64]:
    arr = np.asarray(values if values is not None else np.zeros((0, width)), dtype=float)
    if arr.size == 0:
        return np.zeros((0, width), dtype=float)
    return arr.reshape(-1, width)


@dataclass(frozen=True)
class Mesh:
    vertices: NDArray[np.float64] = field(default_factory=lambda: np.zeros((0, 3)))
    normals: NDArray[np.float64] = field(default_factory=lambda: np.zeros((0, 3)))
    texcoords: NDArray[np.float64] = field(default_factory=lambda: np.zeros((0, 2)))

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", _rows(self.vertices, 3))
        object.__setattr__(self, "normals", _rows(self.normals, 3))
        object.__setattr__(self, "texcoords", _rows(self.texcoords, 2))

    def vertex(self, index: int) -> Vec3:
        if not 1 <= index <= len(self.vertices):
            raise MeshIndexError(f"Vertex index {index} out of range 1..{len(self.vertices)}")
        return self.vertices[index - 1]

    def normal(self, index: int) -> Vec3 | None:
        if index == NO_NORMAL:
            return None
        if not 1 <= index <= len(self.normals):
            raise MeshIndexError(f"Normal index {index} out of range 1..{len(self.normals)}")
        return self.normals[index - 1]

    def texcoord(self, index: int) -> NDArray[np.float64] | None:
        if index == NO_TEXTURE:
            return None
        if not 1 <= index <= len(self.texcoords):
            raise MeshIndexError(f"Texture index {index} out of range 1..{len(self.texcoords)}")
        return self.texcoords[index - 1]


@dataclass(frozen=True)
class VertexRef:
    vertex: int
    normal: int = NO_NORMAL
    texcoord: int = NO_TEXTURE


@dataclass(frozen=True)
class Face:
    """Triangle whose corners index into a scene-wide ``Mesh``."""

    mesh: Mesh
    corners: tuple[VertexRef, VertexRef, VertexRef]
    material: int | None = None

    def __post_init__(self) -> None:
        if len(self.corners) != N_VERTICES:
            raise ValueError(f"A face needs exactly {N_VERTICES} corners, got {len(self.corners)}")
        object.__setattr__(self, "corners", tuple(self.corners))

    def points(self) -> tuple[Vec3, Vec3, Vec3]:
        v0, v1, v2 = (self.mesh.vertex(c.vertex) for c in self.corners)
        return v0, v1, v2

    def plane(self) -> Plane:
        v0, v1, v2 = self.points()
        return Plane(origin=v0, u=v1 - v0, v=v2 - v1, material=self.material)

    def barycentric(self, point: Vec3) -> NDArray[np.float64] | None:
        """Area weights of ``point`` for each corner, or None when it lies outside."""

        v0, v1, v2 = self.points()
        p = np.asarray(point, dtype=float)
        total = triangle_area(v0, v1, v2)
        a = triangle_area(p, v1, v2)
        b = triangle_area(v0, p, v2)
        c = triangle_area(v0, v1, p)
        if a + b + c > total + CONTAINMENT_SLACK:
            return None
        return np.array([a, b, c], dtype=float) / total

    def contains(self, point: Vec3) -> bool:
        return self.barycentric(point) is not None

    def _interpolate(self, values: list, weights: NDArray[np.float64]) -> NDArray[np.float64] | None:
        if any(v is None for v in values):
            return None
        return weights[0] * values[0] + weights[1] * values[1] + weights[2] * values[2]

    def normal_at(self, point: Vec3, weights: NDArray[np.float64] | None = None) -> Vec3:
        normals = [self.mesh.normal(c.normal) for c in self.corners]
        if any(n is None for n in normals):
            return self.plane().unit_normal()
        w = self.barycentric(point) if weights is None else weights
        if w is None:
            raise ValueError("Point lies outside the face")
        return normalize(self._interpolate(normals, w))

    def texcoord_at(self, point: Vec3, weights: NDArray[np.float64] | None = None) -> NDArray[np.float64] | None:
        coords = [self.mesh.texcoord(c.texcoord) for c in self.corners]
        if any(t is None for t in coords):
            return None
        w = self.barycentric(point) if weights is None else weights
        if w is None:
            raise ValueError("Point lies outside the face")
        return self._interpolate(coords, w)

    def collide(self, ray: Ray, t_min: float = 0.0) -> Collision:
        hit = self.plane().collide(ray, t_min)
        if not hit.hit:
            return hit
        w = self.barycentric(hit.point)
        if w is None:
            return Collision.none()
        return Collision(
            kind=hit.kind,
            point=hit.point,
            distance=hit.distance,
            normal=self.normal_at(hit.point, weights=w),
            incident=hit.incident,
            texcoord=self.texcoord_at(hit.point, weights=w),
        )
