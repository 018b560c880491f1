from __future__ import annotations

import math

import numpy as np

from hmdmesh.core.distortion import RadialDistortion
from hmdmesh.core.geometry import XYLatLong


def example_table(
    *,
    cols: int = 9,
    rows: int = 9,
    h_fov_degrees: float = 90.0,
    v_fov_degrees: float = 90.0,
    distortion: RadialDistortion | None = None,
    signed: bool = False,
) -> list[XYLatLong]:
    """
    Raster-ordered table (rows bottom to top, columns left to right) of field angles
    seen through a lens that applies `distortion` to a display spanning the given
    field of view.

    Display x grows to the right while longitude grows toward -X, so the left column
    gets the positive longitudes.
    """
    if cols < 2 or rows < 2:
        raise ValueError("need at least a 2x2 grid")
    if not (0.0 < h_fov_degrees < 180.0 and 0.0 < v_fov_degrees < 180.0):
        raise ValueError("field of view must be inside (0, 180) degrees")
    distortion = distortion or RadialDistortion()

    u = np.linspace(0.0, 1.0, cols)
    w = np.linspace(0.0, 1.0, rows)
    uu, ww = np.meshgrid(u, w)
    tx = (2.0 * uu - 1.0) * math.tan(math.radians(h_fov_degrees) / 2.0)
    ty = (2.0 * ww - 1.0) * math.tan(math.radians(v_fov_degrees) / 2.0)
    sx, sy = distortion.distort(tx, ty)
    lon = np.degrees(np.arctan(-sx))
    lat = np.degrees(np.arctan(sy))

    if signed:
        uu, ww = 2.0 * uu - 1.0, 2.0 * ww - 1.0

    return [
        XYLatLong(x=float(x), y=float(y), latitude=float(la), longitude=float(lo))
        for x, y, la, lo in zip(uu.ravel(), ww.ravel(), lat.ravel(), lon.ravel())
    ]
