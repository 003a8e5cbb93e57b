"""Per-pixel render loop.

Example:
    >>> import numpy as np
    >>> from rt_core.renderer import render
    >>> from rt_core.scene import Scene
    >>> sc = Scene(np.zeros(3), np.array([0.0, 0, -1]), np.array([0.0, 1, 0]), 60.0, 2, 2, np.array([0.0, 0.0, 1.0]))
    >>> render(sc).get_pixel(0, 0)
    (0, 0, 255)
"""

from __future__ import annotations

import time
from concurrent.futures import ProcessPoolExecutor
from typing import Callable, Iterable, Protocol

import numpy as np
from numpy.typing import NDArray

from rt_core.camera import ViewPlane, build_view_plane
from rt_core.image import RGB, Image, color_to_rgb
from rt_core.logger import get_logger
from rt_core.scene import Scene
from rt_core.tracer import DEFAULT_CONFIG, TraceConfig, trace

logger = get_logger(__name__)


class PixelSink(Protocol):
    def set_pixel(self, x: int, y: int, rgb: RGB) -> None: ...


def render_pixel(scene: Scene, view: ViewPlane, x: int, y: int, config: TraceConfig = DEFAULT_CONFIG) -> RGB:
    """Colour of pixel (x, y); independent of every other pixel."""

    return color_to_rgb(trace(view.primary_ray(x, y), scene, config))


def render_row(scene: Scene, view: ViewPlane, y: int, config: TraceConfig = DEFAULT_CONFIG) -> NDArray[np.uint8]:
    row = np.zeros((scene.width, 3), dtype=np.uint8)
    for x in range(scene.width):
        row[x] = render_pixel(scene, view, x, y, config)
    return row


def _render_row_job(args: tuple[Scene, ViewPlane, int, TraceConfig]) -> tuple[int, NDArray[np.uint8]]:
    scene, view, y, config = args
    return y, render_row(scene, view, y, config)


def render(
    scene: Scene,
    config: TraceConfig | None = None,
    sink: PixelSink | None = None,
    workers: int = 1,
    progress: Callable[[int], None] | None = None,
) -> Image | PixelSink:
    """Render ``scene`` row-major, top to bottom, into ``sink`` (a new Image by default).

    With ``workers > 1`` rows are computed in worker processes and written to
    the sink in row order; the result is identical to a serial render.
    ``progress`` is called with each finished row index.
    """

    cfg = config or DEFAULT_CONFIG
    view = build_view_plane(scene, cfg.view_distance)
    logger.debug(
        "View plane origin=%s u=%s v=%s size=%.6fx%.6f",
        view.origin.tolist(),
        view.u.tolist(),
        view.v.tolist(),
        view.width,
        view.height,
    )
    out = sink if sink is not None else Image.blank(scene.width, scene.height)

    start = time.perf_counter()
    for y, row in _rows(scene, view, cfg, workers):
        for x in range(scene.width):
            r, g, b = (int(c) for c in row[x])
            out.set_pixel(x, y, (r, g, b))
        if progress is not None:
            progress(y)
    logger.info(
        "Rendered %dx%d with %d shapes, %d lights in %.2fs",
        scene.width,
        scene.height,
        len(scene.shapes),
        len(scene.lights),
        time.perf_counter() - start,
    )
    return out


def _rows(scene: Scene, view: ViewPlane, config: TraceConfig, workers: int) -> Iterable[tuple[int, NDArray[np.uint8]]]:
    if workers <= 1 or scene.height <= 1:
        for y in range(scene.height):
            yield y, render_row(scene, view, y, config)
        return
    jobs = [(scene, view, y, config) for y in range(scene.height)]
    with ProcessPoolExecutor(max_workers=int(workers)) as pool:
        # map() preserves submission order, so rows arrive top to bottom.
        yield from pool.map(_render_row_job, jobs)
