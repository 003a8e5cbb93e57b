"""Line-oriented scene description decoder.

Each non-blank line holds one keyword followed by its arguments; ``#`` starts
a comment. ``mtlcolor`` and ``texture`` apply to every shape declared after
them. Mesh data (``v``/``vn``/``vt``) may appear anywhere; faces are resolved
against the complete mesh once the whole file has been read.

Example:
    >>> from rt_io.scene_io import parse_scene
    >>> sc = parse_scene('''
    ... eye 0 0 4
    ... viewdir 0 0 -1
    ... updir 0 1 0
    ... fovv 60
    ... imsize 4 3
    ... bkgcolor 0 0 0
    ... mtlcolor 1 0 0 1 1 1 0.2 0.6 0.2 10
    ... sphere 0 0 0 1
    ... ''')
    >>> len(sc.shapes), sc.width, sc.materials[0].is_opaque
    (1, 4, True)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rt_core.geometry import Plane
from rt_core.lights import DirectionalLight, PointLight, SpotLight
from rt_core.logger import get_logger
from rt_core.material import Material
from rt_core.mesh import Face, Mesh, VertexRef
from rt_core.scene import Scene
from rt_core.shapes import Ellipsoid, Sphere
from rt_io.ppm_io import PPMFormatError, load_ppm

COMMENT = "#"
REQUIRED = ("eye", "viewdir", "updir", "fovv", "imsize", "bkgcolor")
ARITY: dict[str, tuple[int, ...]] = {
    "eye": (3,),
    "viewdir": (3,),
    "updir": (3,),
    "fovv": (1,),
    "imsize": (2,),
    "bkgcolor": (3,),
    "parallel": (0,),
    "mtlcolor": (10, 12),
    "texture": (1,),
    "sphere": (4,),
    "ellipsoid": (6,),
    "plane": (9,),
    "light": (7,),
    "spotlight": (10,),
    "v": (3,),
    "vn": (3,),
    "vt": (2,),
    "f": (3,),
}
NO_TEXTURE_NAME = "none"

logger = get_logger(__name__)


class SceneFormatError(ValueError):
    """Malformed or invalid scene description."""


@dataclass(frozen=True)
class _PendingFace:
    lineno: int
    corners: tuple[VertexRef, VertexRef, VertexRef]
    material: int


def _floats(args: list[str], lineno: int) -> list[float]:
    try:
        return [float(a) for a in args]
    except ValueError as exc:
        raise SceneFormatError(f"line {lineno}: expected numbers, got {' '.join(args)!r}") from exc


def _vertex_ref(token: str, lineno: int) -> VertexRef:
    """Parse ``i``, ``i/t``, ``i//n`` or ``i/t/n`` (1-based; omitted parts are 0)."""

    parts = token.split("/")
    if len(parts) > 3 or not parts[0]:
        raise SceneFormatError(f"line {lineno}: bad face vertex {token!r}")
    try:
        nums = [int(p) if p else 0 for p in parts]
    except ValueError as exc:
        raise SceneFormatError(f"line {lineno}: bad face vertex {token!r}") from exc
    if any(n < 0 for n in nums) or nums[0] == 0:
        raise SceneFormatError(f"line {lineno}: face indices must be positive, got {token!r}")
    nums += [0] * (3 - len(nums))
    return VertexRef(vertex=nums[0], texcoord=nums[1], normal=nums[2])


class _SceneBuilder:
    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir
        self.camera: dict[str, Any] = {}
        self.projection = "perspective"
        self.shapes: list[Any] = []
        self.lights: list[Any] = []
        self.materials: list[Material] = []
        self.textures: list = []
        self.vertices: list[list[float]] = []
        self.normals: list[list[float]] = []
        self.texcoords: list[list[float]] = []
        self._mtl_args: tuple[float, ...] | None = None
        self._texture: int | None = None
        self._material_ids: dict[tuple, int] = {}
        self._texture_ids: dict[Path, int] = {}

    def current_material(self, lineno: int) -> int:
        if self._mtl_args is None:
            raise SceneFormatError(f"line {lineno}: shape declared before any mtlcolor")
        key = (self._mtl_args, self._texture)
        if key not in self._material_ids:
            a = self._mtl_args
            opacity, refraction = (a[10], a[11]) if len(a) == 12 else (1.0, 1.0)
            try:
                mtl = Material(
                    color=a[0:3],
                    highlight=a[3:6],
                    ambient=a[6],
                    diffuse=a[7],
                    specular=a[8],
                    exponent=int(a[9]),
                    texture=self._texture,
                    opacity=opacity,
                    refraction=refraction,
                )
            except ValueError as exc:
                raise SceneFormatError(f"line {lineno}: {exc}") from exc
            self._material_ids[key] = len(self.materials)
            self.materials.append(mtl)
        return self._material_ids[key]

    def set_texture(self, name: str, lineno: int) -> None:
        if name.lower() == NO_TEXTURE_NAME:
            self._texture = None
            return
        path = (self.base_dir / name).resolve()
        if path not in self._texture_ids:
            try:
                image = load_ppm(path)
            except (OSError, PPMFormatError) as exc:
                raise SceneFormatError(f"line {lineno}: cannot load texture {name!r}: {exc}") from exc
            self._texture_ids[path] = len(self.textures)
            self.textures.append(image)
        self._texture = self._texture_ids[path]

    def feed(self, keyword: str, args: list[str], lineno: int) -> None:
        if keyword in REQUIRED:
            if keyword in self.camera:
                raise SceneFormatError(f"line {lineno}: multiple definition of {keyword}")
            self.camera[keyword] = (_floats(args, lineno), lineno)
            return
        if keyword == "parallel":
            self.projection = "parallel"
        elif keyword == "texture":
            self.set_texture(args[0], lineno)
        elif keyword == "f":
            corners = tuple(_vertex_ref(a, lineno) for a in args)
            self.shapes.append(_PendingFace(lineno, corners, self.current_material(lineno)))
        else:
            self._feed_numeric(keyword, _floats(args, lineno), lineno)

    def _feed_numeric(self, keyword: str, x: list[float], lineno: int) -> None:
        if keyword == "mtlcolor":
            self._mtl_args = tuple(x)
        elif keyword == "sphere":
            self.shapes.append(Sphere(center=x[0:3], radius=x[3], material=self.current_material(lineno)))
        elif keyword == "ellipsoid":
            self.shapes.append(Ellipsoid(center=x[0:3], dimension=x[3:6], material=self.current_material(lineno)))
        elif keyword == "plane":
            self.shapes.append(Plane(origin=x[0:3], u=x[3:6], v=x[6:9], material=self.current_material(lineno)))
        elif keyword == "light":
            if x[3] == 0.0:
                self.lights.append(DirectionalLight(direction=x[0:3], color=x[4:7]))
            else:
                self.lights.append(PointLight(position=x[0:3], color=x[4:7]))
        elif keyword == "spotlight":
            self.lights.append(SpotLight(position=x[0:3], direction=x[3:6], angle_deg=x[6], color=x[7:10]))
        elif keyword == "v":
            self.vertices.append(x)
        elif keyword == "vn":
            self.normals.append(x)
        elif keyword == "vt":
            self.texcoords.append(x)

    def _resolve_face(self, pending: _PendingFace, mesh: Mesh) -> Face:
        for c in pending.corners:
            if c.vertex > len(self.vertices):
                raise SceneFormatError(f"line {pending.lineno}: vertex index {c.vertex} out of range")
            if c.normal > len(self.normals):
                raise SceneFormatError(f"line {pending.lineno}: normal index {c.normal} out of range")
            if c.texcoord > len(self.texcoords):
                raise SceneFormatError(f"line {pending.lineno}: texture index {c.texcoord} out of range")
        return Face(mesh=mesh, corners=pending.corners, material=pending.material)

    def build(self) -> Scene:
        missing = [k for k in REQUIRED if k not in self.camera]
        if missing:
            raise SceneFormatError("Missing required keywords: " + ", ".join(missing))
        w, h = self.camera["imsize"][0]
        if w != int(w) or h != int(h):
            raise SceneFormatError(f"line {self.camera['imsize'][1]}: image size must be integral")

        mesh = Mesh(vertices=self.vertices, normals=self.normals, texcoords=self.texcoords)
        shapes = [self._resolve_face(s, mesh) if isinstance(s, _PendingFace) else s for s in self.shapes]
        scene = Scene(
            eye=self.camera["eye"][0],
            view=self.camera["viewdir"][0],
            up=self.camera["updir"][0],
            fov_deg=self.camera["fovv"][0][0],
            width=int(w),
            height=int(h),
            background=self.camera["bkgcolor"][0],
            shapes=shapes,
            lights=self.lights,
            materials=self.materials,
            textures=self.textures,
            mesh=mesh if len(self.vertices) else None,
            projection=self.projection,
        )
        try:
            return scene.validate()
        except ValueError as exc:
            raise SceneFormatError(str(exc)) from exc


def parse_scene(text: str, base_dir: str | Path | None = None) -> Scene:
    """Decode scene text; texture paths are resolved against ``base_dir`` (cwd by default)."""

    builder = _SceneBuilder(Path(base_dir) if base_dir is not None else Path.cwd())
    for lineno, raw in enumerate(text.splitlines(), start=1):
        tokens = raw.split(COMMENT, 1)[0].split()
        if not tokens:
            continue
        keyword, args = tokens[0], tokens[1:]
        if keyword not in ARITY:
            raise SceneFormatError(f"line {lineno}: unknown keyword {keyword!r}")
        if len(args) not in ARITY[keyword]:
            want = " or ".join(str(n) for n in ARITY[keyword])
            raise SceneFormatError(f"line {lineno}: {keyword} takes {want} arguments, got {len(args)}")
        builder.feed(keyword, args, lineno)

    scene = builder.build()
    logger.debug("Decoded scene %s", scene.summary())
    return scene


def load_scene(path: str | Path) -> Scene:
    p = Path(path)
    scene = parse_scene(p.read_text(encoding="utf-8"), base_dir=p.parent)
    logger.info("Loaded scene %s: %d shapes, %d lights", p, len(scene.shapes), len(scene.lights))
    return scene
