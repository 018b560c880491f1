from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from hmdmesh.api.calibration import angles_to_config
from hmdmesh.api.table_io import display_descriptor, load_angle_table, save_angle_table, save_display_config
from hmdmesh.config import Config
from hmdmesh.core.distortion import RadialDistortion
from hmdmesh.core.geometry import RectBounds
from hmdmesh.errors import GeometryError, InputError
from hmdmesh.sim.example_table import example_table


def _config_from_args(args: argparse.Namespace) -> Config:
    config = Config(
        use_right_eye=args.eye == "right",
        use_field_angles=not args.raw_angles,
        to_meters=0.001 if args.mm else 1.0,
        depth=args.depth,
        signed_coordinates=args.signed,
        signed_input_coordinates=args.signed_input,
        verbose=args.verbose,
    )
    if args.rect is not None:
        left, right, bottom, top = args.rect
        config = config.with_options(
            compute_screen_bounds=False,
            supplied_screen_bounds=RectBounds(left=left, right=right, top=top, bottom=bottom),
        )
    if args.verify_angles is not None:
        xx, xy, yx, yy, max_deg = args.verify_angles
        config = config.with_options(verify_angles=True, xx=xx, xy=xy, yx=yx, yy=yy, max_angle_diff_degrees=max_deg)
    return config


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="hmdmesh")
    parser.add_argument("--verbose", action="store_true", help="Log fit details.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    a2c = sub.add_parser(
        "angles-to-config",
        help="Fit a virtual screen to a table of display locations and angles; write FOV, COP and mesh.",
    )
    a2c.add_argument("table", type=Path, help="Text table: x y latitude longitude (degrees) per line.")
    a2c.add_argument("--eye", type=str, default="left", choices=["left", "right"])
    a2c.add_argument("--depth", type=float, default=2.0, help="Assumed screen distance (meters, or mm with --mm).")
    a2c.add_argument("--mm", action="store_true", help="Depth is given in millimeters.")
    a2c.add_argument(
        "--raw-angles",
        action="store_true",
        help="Angles are longitude/latitude on a sphere rather than field angles; fit the screen plane.",
    )
    a2c.add_argument(
        "--rect",
        type=float,
        nargs=4,
        metavar=("LEFT", "RIGHT", "BOTTOM", "TOP"),
        default=None,
        help="Use these screen bounds (degrees from the screen perpendicular) instead of computing them.",
    )
    a2c.add_argument("--signed", action="store_true", help="Mesh coordinates in [-1,1] instead of [0,1].")
    a2c.add_argument(
        "--signed-input", action="store_true", help="Table display coordinates are in [-1,1] instead of [0,1]."
    )
    a2c.add_argument(
        "--verify-angles",
        type=float,
        nargs=5,
        metavar=("XX", "XY", "YX", "YY", "MAX_DEGREES"),
        default=None,
        help="Re-derive angles from the result and flag differences above MAX_DEGREES.",
    )
    a2c.add_argument("--out-json", type=Path, default=None, help="Write the display config here (default: stdout).")

    ex = sub.add_parser("example-table", help="Write a synthetic table for a lens with radial distortion.")
    ex.add_argument("--out", type=Path, required=True)
    ex.add_argument("--cols", type=int, default=9)
    ex.add_argument("--rows", type=int, default=9)
    ex.add_argument("--hfov", type=float, default=90.0, help="Undistorted horizontal field of view (degrees).")
    ex.add_argument("--vfov", type=float, default=90.0, help="Undistorted vertical field of view (degrees).")
    ex.add_argument("--k1", type=float, default=0.0)
    ex.add_argument("--k2", type=float, default=0.0)
    ex.add_argument("--k3", type=float, default=0.0)
    ex.add_argument("--signed", action="store_true", help="Display coordinates in [-1,1] instead of [0,1].")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "angles-to-config":
        try:
            samples = load_angle_table(args.table)
            result = angles_to_config(samples, _config_from_args(args))
        except (InputError, GeometryError) as e:
            print(f"{args.table}: {e}", file=sys.stderr)
            return 1
        if args.out_json is None:
            print(json.dumps(display_descriptor(result), indent=2, sort_keys=True))
        else:
            save_display_config(args.out_json, result)
            print(f"Wrote {args.out_json}")
        return 0

    if args.cmd == "example-table":
        try:
            samples = example_table(
                cols=args.cols,
                rows=args.rows,
                h_fov_degrees=args.hfov,
                v_fov_degrees=args.vfov,
                distortion=RadialDistortion(k1=args.k1, k2=args.k2, k3=args.k3),
                signed=args.signed,
            )
        except ValueError as e:
            print(f"example-table: {e}", file=sys.stderr)
            return 1
        save_angle_table(args.out, samples)
        print(f"Wrote {args.out}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")
