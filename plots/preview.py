"""PNG/PDF preview figures for rendered images."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from rt_core.image import RGB_MAX, Image
from rt_core.logger import get_logger

CHANNELS = (("R", "tab:red"), ("G", "tab:green"), ("B", "tab:blue"))

logger = get_logger(__name__)


@dataclass(frozen=True)
class PreviewConfig:
    dpi: int = 180
    title: str | None = None
    show_axes: bool = False
    histogram: bool = False
    bins: int = 32
    pdf: bool = False


def _ensure_dir(out_dir: str | Path) -> Path:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)
    return p


def _save(fig: plt.Figure, out: Path, name: str, config: PreviewConfig) -> list[Path]:
    fig.tight_layout()
    written = [out / f"{name}.png"]
    fig.savefig(written[0], dpi=config.dpi)
    if config.pdf:
        written.append(out / f"{name}.pdf")
        fig.savefig(written[1])
    plt.close(fig)
    return written


def _pixels(image: Image | np.ndarray) -> np.ndarray:
    return image.pixels if isinstance(image, Image) else np.asarray(image, dtype=np.uint8)


def plot_image(image: Image | np.ndarray, out: Path, name: str, config: PreviewConfig) -> list[Path]:
    px = _pixels(image)
    h, w = px.shape[:2]
    fig, ax = plt.subplots(figsize=(max(2.0, 6.0 * w / max(w, h)), max(2.0, 6.0 * h / max(w, h))))
    # Nearest interpolation keeps one image pixel per screen block.
    ax.imshow(px, interpolation="nearest")
    ax.set_title(config.title or f"{name} ({w}x{h})")
    if not config.show_axes:
        ax.set_axis_off()
    return _save(fig, out, name, config)


def plot_histogram(image: Image | np.ndarray, out: Path, name: str, config: PreviewConfig) -> list[Path]:
    px = _pixels(image)
    fig, ax = plt.subplots(figsize=(7, 4))
    edges = np.linspace(0, RGB_MAX + 1, int(config.bins) + 1)
    for i, (label, color) in enumerate(CHANNELS):
        ax.hist(px[..., i].ravel(), bins=edges, histtype="step", color=color, label=label)
    ax.set_xlabel("channel value")
    ax.set_ylabel("pixel count")
    ax.set_title(f"{name} channel histogram")
    ax.legend()
    return _save(fig, out, f"{name}_hist", config)


def save_preview(
    image: Image | np.ndarray,
    out_dir: str | Path,
    name: str,
    config: PreviewConfig | None = None,
) -> list[Path]:
    """Write ``<name>.png`` (and the optional histogram/PDF files); return the paths written."""

    cfg = config or PreviewConfig()
    out = _ensure_dir(out_dir)
    written = plot_image(image, out, name, cfg)
    if cfg.histogram:
        written += plot_histogram(image, out, name, cfg)
    logger.info("Saved preview %s to %s", name, out)
    return written
