from __future__ import annotations

import dataclasses
import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hmdmesh.core.geometry import RectBounds
from hmdmesh.errors import InputError

CONFIG_SCHEMA = "hmdmesh.config.v0"


@dataclass(frozen=True)
class Config:
    """
    Parameters of one calibration run.

    `supplied_screen_bounds` is only used when `compute_screen_bounds` is false. It is
    given in degrees of view angle, measured from the point where the perpendicular
    from the eye meets the screen plane.

    `depth` is in caller units; `to_meters` scales it to meters.

    The verification matrix [[xx, xy], [yx, yy]] maps canonical screen axes (about the
    screen center) onto the fitted screen before angles are re-derived; identity checks
    the fit as computed.

    `signed_coordinates` selects [-1,1] instead of [0,1] for the canonical (mesh `to`)
    coordinates; `signed_input_coordinates` states which of the two the table's
    display coordinates use.
    """

    use_right_eye: bool = False
    compute_screen_bounds: bool = True
    supplied_screen_bounds: RectBounds | None = None
    use_field_angles: bool = True
    to_meters: float = 1.0
    depth: float = 2.0
    verify_angles: bool = False
    xx: float = 1.0
    xy: float = 0.0
    yx: float = 0.0
    yy: float = 1.0
    max_angle_diff_degrees: float = 1.0
    signed_coordinates: bool = False
    signed_input_coordinates: bool = False
    verbose: bool = False

    @property
    def depth_meters(self) -> float:
        return self.depth * self.to_meters

    def with_options(self, **changes: Any) -> Config:
        return dataclasses.replace(self, **changes)


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise InputError(msg)


def _finite(x: float) -> bool:
    return isinstance(x, (int, float)) and math.isfinite(x)


def check_config(config: Config) -> None:
    _require(_finite(config.depth) and config.depth > 0.0, "depth must be > 0")
    _require(_finite(config.to_meters) and config.to_meters > 0.0, "to_meters must be > 0")
    _require(
        _finite(config.max_angle_diff_degrees) and config.max_angle_diff_degrees > 0.0,
        "max_angle_diff_degrees must be > 0",
    )
    for name in ("xx", "xy", "yx", "yy"):
        _require(_finite(getattr(config, name)), f"{name} must be finite")

    if not config.compute_screen_bounds:
        b = config.supplied_screen_bounds
        if b is None:
            raise InputError("supplied_screen_bounds is required when compute_screen_bounds is false")
        for name in ("left", "right", "top", "bottom"):
            v = getattr(b, name)
            _require(_finite(v) and -90.0 < v < 90.0, f"supplied_screen_bounds.{name} must be inside (-90, 90) degrees")
        _require(b.left < b.right, "supplied_screen_bounds: left must be < right")
        _require(b.bottom < b.top, "supplied_screen_bounds: bottom must be < top")


def load_config(path: Path) -> Config:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return parse_config(data)


def parse_config(data: dict[str, Any]) -> Config:
    _require(isinstance(data, dict), "config must be a JSON object")
    _require(data.get("schema_version") == CONFIG_SCHEMA, f"schema_version must be {CONFIG_SCHEMA}")

    known = {f.name for f in dataclasses.fields(Config)} | {"schema_version"}
    unknown = sorted(set(data) - known)
    _require(not unknown, f"unknown config keys: {unknown}")

    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(Config):
        if f.name not in data:
            continue
        raw = data[f.name]
        if f.name == "supplied_screen_bounds":
            if raw is None:
                kwargs[f.name] = None
                continue
            _require(
                isinstance(raw, dict) and set(raw) == {"left", "right", "top", "bottom"},
                "supplied_screen_bounds must have left, right, top, bottom",
            )
            kwargs[f.name] = RectBounds(
                left=float(raw["left"]),
                right=float(raw["right"]),
                top=float(raw["top"]),
                bottom=float(raw["bottom"]),
            )
        elif isinstance(f.default, bool):
            _require(isinstance(raw, bool), f"{f.name} must be true or false")
            kwargs[f.name] = raw
        else:
            _require(isinstance(raw, (int, float)) and not isinstance(raw, bool), f"{f.name} must be a number")
            kwargs[f.name] = float(raw)

    config = Config(**kwargs)
    check_config(config)
    return config


def config_to_dict(config: Config) -> dict[str, Any]:
    d = dataclasses.asdict(config)
    d["schema_version"] = CONFIG_SCHEMA
    return d
