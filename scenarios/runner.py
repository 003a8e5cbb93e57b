"""Render scene files or built-in scenario sweeps to PPM, with HDF5 export and previews.

Example:
    python -m scenarios.runner --scene-file scenes/spheres.txt
    python -m scenarios.runner --scenario S2 --h5 outputs/renders.h5 --preview outputs/preview
"""

from __future__ import annotations

import argparse
from dataclasses import asdict, replace
import logging
from pathlib import Path
import shlex
import sys
from typing import Any, Sequence

from plots.preview import PreviewConfig, save_preview
from rt_core.errors import RenderError
from rt_core.image import Image
from rt_core.logger import get_logger, set_level
from rt_core.renderer import render
from rt_core.scene import PROJECTIONS, Scene
from rt_core.tracer import TraceConfig
from rt_io.hdf5_io import save_renders, self_test_meta_roundtrip
from rt_io.ppm_io import save_ppm
from rt_io.scene_io import SceneFormatError, load_scene
from scenarios import (
    S0_ambient_sphere,
    S1_shadow_planes,
    S2_glass_sphere,
    S3_textured_mesh,
    S4_spotlight,
)
from scenarios.common import render_case

SCENARIOS = {
    "S0": S0_ambient_sphere,
    "S1": S1_shadow_planes,
    "S2": S2_glass_sphere,
    "S3": S3_textured_mesh,
    "S4": S4_spotlight,
}
OUTPUT_SUFFIX = ".ppm"

logger = get_logger(__name__)


def _parse_size(text: str) -> tuple[int, int]:
    try:
        w, h = (int(x) for x in text.lower().split("x"))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"size must look like WIDTHxHEIGHT, got {text!r}") from exc
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError(f"size must be positive, got {text!r}")
    return w, h


def _parse_scenarios(text: str) -> list[str]:
    if text.strip().lower() == "all":
        return list(SCENARIOS)
    out = [x.strip() for x in text.split(",") if x.strip()]
    unknown = [x for x in out if x not in SCENARIOS]
    if unknown:
        raise argparse.ArgumentTypeError(f"unknown scenario(s) {unknown}; choose from {sorted(SCENARIOS)}")
    return out


def scene_output_path(scene_file: str | Path) -> Path:
    """``scene.txt`` renders to ``scene.ppm`` in the same directory."""

    return Path(scene_file).with_suffix(OUTPUT_SUFFIX)


def _apply_projection(scene: Scene, projection: str | None) -> Scene:
    if projection is None or projection == scene.projection:
        return scene
    return replace(scene, projection=projection)


def render_scene_file(
    scene_file: str | Path,
    config: TraceConfig,
    workers: int = 1,
    projection: str | None = None,
) -> tuple[Scene, Image, Path]:
    scene = _apply_projection(load_scene(scene_file), projection)
    image = render(scene, config=config, workers=workers)
    out = save_ppm(scene_output_path(scene_file), image)
    return scene, image, out


def run_scenarios(
    scenario_ids: Sequence[str],
    config: TraceConfig,
    output_dir: str | Path,
    case: int | None = None,
    size: tuple[int, int] | None = None,
    workers: int = 1,
    projection: str | None = None,
) -> dict[str, Any]:
    """Render every sweep case of each scenario; returns the archive-shaped dataset."""

    out_dir = Path(output_dir)
    data: dict[str, Any] = {"meta": {}, "scenarios": {}}
    dims = {"width": size[0], "height": size[1]} if size else {}
    for sid in scenario_ids:
        mod = SCENARIOS[sid]
        params_list = mod.build_sweep_params()
        indices = range(len(params_list)) if case is None else [case]
        cases: dict[str, Any] = {}
        for i in indices:
            if not 0 <= i < len(params_list):
                raise SystemExit(f"Scenario {sid} has no case {i} (0..{len(params_list) - 1})")
            params = params_list[i]
            scene = _apply_projection(mod.build_scene(**params, **dims), projection)
            logger.info("Rendering %s case %d %s", sid, i, params)
            image = render_case(scene, config, workers)
            save_ppm(out_dir / f"{sid}_{i}{OUTPUT_SUFFIX}", image)
            cases[str(i)] = {"params": dict(params), "scene": scene.summary(), "image": image}
        data["scenarios"][sid] = {"cases": cases}
    return data


def _export(data: dict[str, Any], h5: str | None, preview: str | None, preview_config: PreviewConfig) -> None:
    if h5:
        save_renders(h5, data)
        if not self_test_meta_roundtrip(h5, expected_meta=data.get("meta", {})):
            raise SystemExit("HDF5 meta roundtrip self-test failed: saved artifact is not reproducible.")
    if preview:
        for sid, sc in data["scenarios"].items():
            for cid, c in sc["cases"].items():
                save_preview(c["image"], preview, f"{sid}_{cid}", preview_config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Recursive ray tracer")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--scene-file", type=str, default=None, help="scene description; writes <name>.ppm beside it")
    src.add_argument("--scenario", type=_parse_scenarios, default=None, help="comma separated ids or 'all'")
    parser.add_argument("--case", type=int, default=None, help="render only this sweep case index")
    parser.add_argument("--output-dir", type=str, default="outputs/renders")
    parser.add_argument("--size", type=_parse_size, default=None, help="WIDTHxHEIGHT for scenarios")
    parser.add_argument("--h5", type=str, default=None)
    parser.add_argument("--preview", type=str, default=None, help="directory for PNG previews")
    parser.add_argument("--histogram", action="store_true")
    parser.add_argument("--max-depth", type=int, default=TraceConfig.max_depth)
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("--projection", type=str, default=None, choices=list(PROJECTIONS))
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    set_level(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = TraceConfig(max_depth=int(args.max_depth))
    except ValueError as exc:
        parser.error(str(exc))
    cmdline = " ".join(shlex.quote(a) for a in (sys.argv if argv is None else ["scenarios.runner", *argv]))
    meta = {"cmdline": cmdline, "trace_config": asdict(config)}
    preview_config = PreviewConfig(histogram=bool(args.histogram))

    try:
        if args.scene_file:
            scene, image, out = render_scene_file(args.scene_file, config, args.workers, args.projection)
            name = Path(args.scene_file).stem
            data = {"meta": meta, "scenarios": {name: {"cases": {"0": {"params": {}, "scene": scene.summary(), "image": image}}}}}
            logger.info("Wrote %s", out)
        else:
            data = run_scenarios(
                args.scenario,
                config,
                args.output_dir,
                case=args.case,
                size=args.size,
                workers=args.workers,
                projection=args.projection,
            )
            data["meta"] = meta
        _export(data, args.h5, args.preview, preview_config)
    except (SceneFormatError, RenderError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
