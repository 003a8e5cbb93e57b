"""Plain-text P3 PPM codec for rendered images and texture maps.

Example:
    >>> from rt_core.image import Image
    >>> from rt_io.ppm_io import decode_ppm, encode_ppm
    >>> img = Image.blank(2, 1)
    >>> img.set_pixel(0, 0, (255, 0, 0))
    >>> encode_ppm(img)
    'P3\\n2 1\\n255\\n255 0 0\\n0 0 0\\n'
    >>> decode_ppm(encode_ppm(img)).get_pixel(0, 0)
    (255, 0, 0)
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from rt_core.image import MAX_DIMENSION, RGB_MAX, Image
from rt_core.logger import get_logger

MAGIC = "P3"
COMMENT = "#"

logger = get_logger(__name__)


class PPMFormatError(ValueError):
    """Malformed P3 data."""


def encode_ppm(image: Image) -> str:
    lines = [MAGIC, f"{image.width} {image.height}", str(RGB_MAX)]
    for r, g, b in image.pixels.reshape(-1, 3).tolist():
        lines.append(f"{r} {g} {b}")
    return "\n".join(lines) + "\n"


def save_ppm(path: str | Path, image: Image) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(encode_ppm(image), encoding="ascii")
    logger.info("Wrote %dx%d PPM to %s", image.width, image.height, p)
    return p


def _tokens(text: str) -> list[str]:
    out: list[str] = []
    for line in text.splitlines():
        body = line.split(COMMENT, 1)[0]
        out.extend(body.split())
    return out


def decode_ppm(text: str) -> Image:
    """Parse P3 text; channel values are rescaled to 0..255 when maxval differs."""

    tokens = _tokens(text)
    if len(tokens) < 4:
        raise PPMFormatError("Truncated PPM header")
    if tokens[0] != MAGIC:
        raise PPMFormatError(f"Unsupported magic number {tokens[0]!r}, expected {MAGIC}")
    try:
        width, height, maxval = (int(t) for t in tokens[1:4])
    except ValueError as exc:
        raise PPMFormatError(f"Invalid PPM header {tokens[1:4]}") from exc
    if not 0 < width <= MAX_DIMENSION or not 0 < height <= MAX_DIMENSION:
        raise PPMFormatError(f"Invalid PPM size ({width}, {height})")
    if not 0 < maxval <= MAX_DIMENSION:
        raise PPMFormatError(f"Invalid PPM max value {maxval}")

    body = tokens[4:]
    expected = width * height * 3
    if len(body) != expected:
        raise PPMFormatError(f"Expected {expected} channel values, found {len(body)}")
    try:
        values = np.asarray([int(t) for t in body], dtype=np.int64)
    except ValueError as exc:
        raise PPMFormatError("Non-integer channel value") from exc
    if np.any(values < 0) or np.any(values > maxval):
        raise PPMFormatError(f"Channel value outside 0..{maxval}")
    if maxval != RGB_MAX:
        values = values * RGB_MAX // maxval
    return Image(values.astype(np.uint8).reshape(height, width, 3))


def load_ppm(path: str | Path) -> Image:
    p = Path(path)
    image = decode_ppm(p.read_text(encoding="ascii"))
    logger.debug("Loaded %dx%d PPM from %s", image.width, image.height, p)
    return image
