"""3D vector algebra on numpy ``float64`` triples.

Points, directions and colours all use the same ``Vec3`` representation.
Functions that produce a vector accept an optional ``out`` array and stay
correct when ``out`` is one of the inputs.

Example:
    >>> import numpy as np
    >>> from rt_core.vector import cross, normalize
    >>> a = np.array([1.0, 0.0, 0.0])
    >>> _ = cross(a, np.array([0.0, 1.0, 0.0]), out=a)
    >>> a.tolist()
    [0.0, 0.0, 1.0]
    >>> normalize(np.zeros(3)).tolist()
    [0.0, 0.0, 0.0]
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray

Vec3 = NDArray[np.float64]
VEC_EPS = 1e-9


def vec3(x: float | ArrayLike = 0.0, y: float = 0.0, z: float = 0.0) -> Vec3:
    if np.ndim(x) > 0:
        v = np.asarray(x, dtype=float).reshape(-1)
        if v.shape != (3,):
            raise ValueError(f"Expected 3 components, got {v.shape[0]}")
        return v.copy()
    return np.array([float(x), float(y), float(z)], dtype=float)


def _emit(result: Vec3, out: Vec3 | None) -> Vec3:
    if out is None:
        return result
    out[:] = result
    return out


def add(a: Vec3, b: Vec3, out: Vec3 | None = None) -> Vec3:
    return _emit(np.asarray(a, dtype=float) + np.asarray(b, dtype=float), out)


def subtract(a: Vec3, b: Vec3, out: Vec3 | None = None) -> Vec3:
    return _emit(np.asarray(a, dtype=float) - np.asarray(b, dtype=float), out)


def negate(a: Vec3, out: Vec3 | None = None) -> Vec3:
    return _emit(-np.asarray(a, dtype=float), out)


def scale(a: Vec3, s: float, out: Vec3 | None = None) -> Vec3:
    return _emit(np.asarray(a, dtype=float) * float(s), out)


def dot(a: Vec3, b: Vec3) -> float:
    return float(a[0] * b[0] + a[1] * b[1] + a[2] * b[2])


def cross(a: Vec3, b: Vec3, out: Vec3 | None = None) -> Vec3:
    # Components are buffered before writing so ``out`` may alias ``a`` or ``b``.
    res = np.array(
        [
            a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0],
        ],
        dtype=float,
    )
    return _emit(res, out)


def magnitude(a: Vec3) -> float:
    return math.sqrt(dot(a, a))


def normalize(a: Vec3, out: Vec3 | None = None) -> Vec3:
    """Return the unit vector along ``a``; the zero vector maps to zero."""

    n = magnitude(a)
    if n < VEC_EPS:
        return _emit(np.zeros(3, dtype=float), out)
    return _emit(np.asarray(a, dtype=float) / n, out)


def angle_between(a: Vec3, b: Vec3) -> float:
    """Angle in radians within [0, pi]; 0.0 when either vector is zero."""

    na = magnitude(a)
    nb = magnitude(b)
    if na < VEC_EPS or nb < VEC_EPS:
        return 0.0
    c = dot(a, b) / (na * nb)
    return math.acos(min(1.0, max(-1.0, c)))


def is_zero(a: Vec3, eps: float = VEC_EPS) -> bool:
    return abs(a[0]) < eps and abs(a[1]) < eps and abs(a[2]) < eps


def is_equal(a: Vec3, b: Vec3, eps: float = VEC_EPS) -> bool:
    return is_zero(subtract(a, b), eps=eps)


def is_unit(a: Vec3, eps: float = VEC_EPS) -> bool:
    return abs(magnitude(a) - 1.0) < eps


def is_parallel(a: Vec3, b: Vec3, eps: float = VEC_EPS) -> bool:
    """True for parallel or anti-parallel vectors (colinear)."""

    return is_zero(cross(normalize(a), normalize(b)), eps=eps)


def is_orthogonal(a: Vec3, b: Vec3, eps: float = VEC_EPS) -> bool:
    return abs(dot(a, b)) < eps


def clamp_color(c: Vec3, out: Vec3 | None = None) -> Vec3:
    """Clamp every channel to [0, 1]."""

    return _emit(np.clip(np.asarray(c, dtype=float), 0.0, 1.0), out)
