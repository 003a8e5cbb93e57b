"""HDF5 schema for rendered images and scenario sweeps.

Layout:
- ``meta`` group: provenance attrs (schema version, git state, command line,
  trace configuration) required on load.
- ``scenarios/<id>/cases/<case>/``: ``params`` (JSON string), ``image``
  (uint8, height x width x 3) and ``scene_json``.

Example:
    >>> import numpy as np
    >>> from rt_core.image import Image
    >>> from rt_io.hdf5_io import load_render, save_render
    >>> img = Image.blank(3, 2)
    >>> _ = save_render('/tmp/rt_render_demo.h5', img, {"cmdline": "demo"})
    >>> out = load_render('/tmp/rt_render_demo.h5')
    >>> out['image'].shape, out['meta']['schema_version']
    ((2, 3, 3), 'render-v1')
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
import subprocess
from typing import Any

import h5py
import numpy as np

from rt_core.image import Image
from rt_core.logger import get_logger

SCHEMA_VERSION = "render-v1"
DEFAULT_SCENARIO = "scene"
DEFAULT_CASE = "0"
REQUIRED_META_ATTRS = (
    "schema_version",
    "created_at",
    "git_commit",
    "git_dirty",
    "cmdline",
    "trace_config_json",
)
META_COMPARE_KEYS = (
    "schema_version",
    "git_commit",
    "git_dirty",
    "cmdline",
    "trace_config",
)

logger = get_logger(__name__)


def _git_meta() -> tuple[str, bool]:
    """Best-effort git commit/dirty metadata."""

    try:
        commit = (
            subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL, text=True)
            .strip()
        )
    except (OSError, subprocess.CalledProcessError):
        commit = "unknown"
    try:
        status = subprocess.check_output(["git", "status", "--porcelain"], stderr=subprocess.DEVNULL, text=True)
        dirty = bool(status.strip())
    except (OSError, subprocess.CalledProcessError):
        dirty = True
    return commit, dirty


def _json_dumps_canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def _json_loads_safe(text: str, fallback: Any) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return fallback


def _attr_str(value: Any) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else str(value)


def _normalize_meta_for_compare(meta: dict[str, Any]) -> dict[str, Any]:
    out = dict(meta)
    out["schema_version"] = str(out.get("schema_version", SCHEMA_VERSION))
    out["git_commit"] = str(out.get("git_commit", "unknown"))
    out["git_dirty"] = bool(out.get("git_dirty", True))
    out["cmdline"] = str(out.get("cmdline", ""))
    tc = out.get("trace_config", out.get("trace_config_json", {}))
    if isinstance(tc, str):
        tc = _json_loads_safe(tc, {})
    out["trace_config"] = tc if isinstance(tc, dict) else {}
    return out


def _require_meta_attrs(meta_g: h5py.Group) -> None:
    missing = [k for k in REQUIRED_META_ATTRS if k not in meta_g.attrs]
    if missing:
        raise ValueError("Missing required render meta attrs: " + ", ".join(missing))


def _image_array(image: Image | np.ndarray) -> np.ndarray:
    px = image.pixels if isinstance(image, Image) else np.asarray(image)
    if px.ndim != 3 or px.shape[2] != 3:
        raise ValueError(f"Image must have shape (height, width, 3), got {px.shape}")
    return np.asarray(px, dtype=np.uint8)


def save_renders(path: str | Path, data: dict[str, Any]) -> Path:
    """Write ``{"meta": {...}, "scenarios": {id: {"cases": {case: {...}}}}}``.

    Each case holds ``image`` (Image or uint8 array), ``params`` and an
    optional ``scene`` summary dict.
    """

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    with h5py.File(p, "w") as f:
        meta = f.create_group("meta")
        now = datetime.now(timezone.utc).isoformat()
        src_meta = _normalize_meta_for_compare(data.get("meta", {}))
        git_commit, git_dirty = _git_meta()
        meta.attrs["created_at"] = str(data.get("meta", {}).get("created_at", now))
        meta.attrs["schema_version"] = SCHEMA_VERSION
        meta.attrs["git_commit"] = str(data.get("meta", {}).get("git_commit", git_commit))
        meta.attrs["git_dirty"] = bool(data.get("meta", {}).get("git_dirty", git_dirty))
        meta.attrs["cmdline"] = src_meta["cmdline"]
        meta.attrs["trace_config_json"] = _json_dumps_canonical(src_meta["trace_config"])

        sc_root = f.create_group("scenarios")
        n_images = 0
        for scenario_id, scenario in data.get("scenarios", {}).items():
            cases_g = sc_root.create_group(str(scenario_id)).create_group("cases")
            for case_id, case in scenario.get("cases", {}).items():
                c_g = cases_g.create_group(str(case_id))
                c_g.create_dataset("params", data=_json_dumps_canonical(case.get("params", {})))
                c_g.create_dataset("scene_json", data=_json_dumps_canonical(case.get("scene", {})))
                c_g.create_dataset("image", data=_image_array(case["image"]), compression="gzip")
                n_images += 1
    logger.info("Saved %d render(s) to %s", n_images, p)
    return p


def load_renders(path: str | Path) -> dict[str, Any]:
    out: dict[str, Any] = {"meta": {}, "scenarios": {}}
    with h5py.File(path, "r") as f:
        if "meta" not in f:
            raise ValueError(f"{path} has no meta group")
        meta_g = f["meta"]
        _require_meta_attrs(meta_g)
        trace_json = _attr_str(meta_g.attrs["trace_config_json"])
        out["meta"] = {
            "created_at": _attr_str(meta_g.attrs["created_at"]),
            "schema_version": _attr_str(meta_g.attrs["schema_version"]),
            "git_commit": _attr_str(meta_g.attrs["git_commit"]),
            "git_dirty": bool(meta_g.attrs["git_dirty"]),
            "cmdline": _attr_str(meta_g.attrs["cmdline"]),
            "trace_config_json": trace_json,
            "trace_config": _json_loads_safe(trace_json, {}),
        }

        for scenario_id, sc_g in f.get("scenarios", {}).items():
            sc: dict[str, Any] = {"cases": {}}
            for case_id, c_g in sc_g["cases"].items():
                sc["cases"][case_id] = {
                    "params": json.loads(_attr_str(c_g["params"][()])),
                    "scene": json.loads(_attr_str(c_g["scene_json"][()])) if "scene_json" in c_g else {},
                    "image": np.asarray(c_g["image"][:], dtype=np.uint8),
                }
            out["scenarios"][scenario_id] = sc
    return out


def save_render(path: str | Path, image: Image | np.ndarray, meta: dict[str, Any] | None = None) -> Path:
    """Archive a single image; ``meta`` may carry ``scene`` and ``params`` besides provenance."""

    meta = dict(meta or {})
    case = {"image": image, "params": meta.pop("params", {}), "scene": meta.pop("scene", {})}
    return save_renders(path, {"meta": meta, "scenarios": {DEFAULT_SCENARIO: {"cases": {DEFAULT_CASE: case}}}})


def load_render(path: str | Path, scenario_id: str | None = None, case_id: str | None = None) -> dict[str, Any]:
    """Return ``{"image", "params", "scene", "meta"}`` for one case (the first one by default)."""

    data = load_renders(path)
    if not data["scenarios"]:
        raise ValueError(f"{path} holds no renders")
    sid = scenario_id if scenario_id is not None else next(iter(data["scenarios"]))
    cases = data["scenarios"][sid]["cases"]
    cid = case_id if case_id is not None else next(iter(cases))
    return {**cases[cid], "meta": data["meta"]}


def self_test_meta_roundtrip(path: str | Path, expected_meta: dict[str, Any] | None = None) -> bool:
    """Validate the meta contract and image shapes of a saved archive.

    Checks:
    - required attrs exist and are loadable
    - optional expected_meta matches loaded meta on stable keys
    - every image is a (height, width, 3) uint8 array
    """

    try:
        loaded = load_renders(path)
    except (OSError, ValueError, KeyError):
        return False
    meta_loaded = _normalize_meta_for_compare(loaded["meta"])
    if expected_meta is not None:
        exp = _normalize_meta_for_compare(expected_meta)
        given = set(expected_meta) | {"schema_version"}
        if "trace_config_json" in expected_meta:
            given.add("trace_config")
        for k in META_COMPARE_KEYS:
            if k in given and exp.get(k) != meta_loaded.get(k):
                return False

    for sc in loaded["scenarios"].values():
        for case in sc["cases"].values():
            img = case["image"]
            if img.ndim != 3 or img.shape[2] != 3 or img.dtype != np.uint8:
                return False
    return True
