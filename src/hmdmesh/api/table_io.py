from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Sequence

from hmdmesh.api.calibration import CalibrationResult
from hmdmesh.core.geometry import XYLatLong
from hmdmesh.errors import InputError

DISPLAY_SCHEMA = "hmdmesh.display.v0"


def parse_angle_table(text: str) -> list[XYLatLong]:
    """
    Parse `x y latitude longitude` records, one per line, angles in degrees.

    Blank lines and everything after `#` are ignored.
    """
    samples = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        fields = line.split()
        if len(fields) != 4:
            raise InputError(f"line {lineno}: expected 4 values (x y latitude longitude), got {len(fields)}")
        try:
            x, y, lat, lon = (float(f) for f in fields)
        except ValueError as e:
            raise InputError(f"line {lineno}: {e}") from e
        if not all(math.isfinite(v) for v in (x, y, lat, lon)):
            raise InputError(f"line {lineno}: non-finite value")
        samples.append(XYLatLong(x=x, y=y, latitude=lat, longitude=lon))
    return samples


def load_angle_table(path: Path) -> list[XYLatLong]:
    return parse_angle_table(Path(path).read_text(encoding="utf-8"))


def format_angle_table(samples: Sequence[XYLatLong]) -> str:
    lines = ["# x y latitude longitude"]
    lines += [f"{s.x:.9g} {s.y:.9g} {s.latitude:.9g} {s.longitude:.9g}" for s in samples]
    return "\n".join(lines) + "\n"


def save_angle_table(path: Path, samples: Sequence[XYLatLong]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_angle_table(samples), encoding="utf-8")
    return path


def display_descriptor(result: CalibrationResult) -> dict[str, Any]:
    """
    Renderer-facing description: field of view, centre of projection and the
    point-sample distortion mesh.
    """
    screen = result.screen
    meta: dict[str, Any] = {
        "schema_version": DISPLAY_SCHEMA,
        "display": {
            "hmd": {
                "field_of_view": {
                    "monocular_horizontal": float(screen.h_fov_degrees),
                    "monocular_vertical": float(screen.v_fov_degrees),
                    "overlap_percent": float(screen.overlap_percent),
                    "pitch_tilt": 0,
                },
                "eyes": [
                    {
                        "center_proj_x": float(screen.x_cop),
                        "center_proj_y": float(screen.y_cop),
                        "rotate_180": 0,
                    }
                ],
                "distortion": {
                    "type": "mono_point_samples",
                    "mono_point_samples": [result.mesh.to_list()],
                },
            }
        },
    }
    if result.verification is not None:
        v = result.verification
        meta["verification"] = {
            "max_angle_diff_degrees": float(v.max_angle_diff_degrees),
            "worst_index": int(v.worst_index),
            "tolerance_degrees": float(v.tolerance_degrees),
            "ok": bool(v.ok),
        }
    return meta


def save_display_config(path: Path, result: CalibrationResult) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(display_descriptor(result), indent=2, sort_keys=True), encoding="utf-8")
    return path


def load_display_config(path: Path) -> dict[str, Any]:
    meta = json.loads(Path(path).read_text(encoding="utf-8"))
    if str(meta.get("schema_version")) != DISPLAY_SCHEMA:
        raise InputError("unsupported display schema")
    return meta
