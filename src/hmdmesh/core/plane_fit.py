from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from hmdmesh.core.geometry import XYZ, Mapping
from hmdmesh.errors import GeometryError

logger = logging.getLogger(__name__)

_Y_AXIS = np.array([0.0, 1.0, 0.0], dtype=np.float64)

# Relative singular-value floor below which a point set counts as collinear.
_RANK_TOL = 1e-9


@dataclass(frozen=True)
class ScreenPlane:
    """
    Plane a*x + b*y + c*z + d = 0 with unit normal (a, b, c) and d > 0.

    The normal points from the screen toward the eye at the origin, so d is the
    eye-to-screen distance and -d*(a, b, c) is the foot of the perpendicular.
    Screen-local coordinates are measured from that foot: h along the horizontal
    axis Y x n (toward +X for a screen straight ahead), v along n x h.
    """

    a: float
    b: float
    c: float
    d: float

    @property
    def normal(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c], dtype=np.float64)

    @property
    def coefficients(self) -> tuple[float, float, float, float]:
        return (self.a, self.b, self.c, self.d)

    def foot(self) -> np.ndarray:
        return -self.d * self.normal

    def axes(self) -> tuple[np.ndarray, np.ndarray]:
        n = self.normal
        h_axis = np.cross(_Y_AXIS, n)
        norm = float(np.linalg.norm(h_axis))
        if norm < 1e-12:
            raise GeometryError("screen plane is horizontal; no horizontal screen axis")
        h_axis = h_axis / norm
        v_axis = np.cross(n, h_axis)
        return h_axis, v_axis

    def evaluate(self, p: XYZ) -> float:
        return self.a * p.x + self.b * p.y + self.c * p.z + self.d

    def project(self, p: XYZ) -> XYZ:
        return p.project_onto_plane(self.a, self.b, self.c, self.d)

    def local_coordinates(self, p: XYZ) -> tuple[float, float]:
        h_axis, v_axis = self.axes()
        rel = p.as_array() - self.foot()
        return float(rel @ h_axis), float(rel @ v_axis)

    def point_at(self, h: float, v: float) -> XYZ:
        h_axis, v_axis = self.axes()
        return XYZ.from_array(self.foot() + h * h_axis + v * v_axis)

    def view_axis_yaw(self) -> float:
        """Yaw (radians, `rotation_about_y` convention) of the perpendicular from the eye."""
        return XYZ.from_array(-self.normal).rotation_about_y()

    def reflected_horizontally(self) -> ScreenPlane:
        return ScreenPlane(a=-self.a, b=self.b, c=self.c, d=self.d)


def points_array(mappings: Sequence[Mapping]) -> np.ndarray:
    return np.array([[m.xyz.x, m.xyz.y, m.xyz.z] for m in mappings], dtype=np.float64).reshape(-1, 3)


def check_spread(points: np.ndarray) -> None:
    """
    Require at least three non-collinear points.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    if points.shape[0] < 3:
        raise GeometryError(f"need >= 3 points to fit a screen plane, got {points.shape[0]}")
    centered = points - points.mean(axis=0)
    s = np.linalg.svd(centered, compute_uv=False)
    scale = float(np.max(np.abs(points)))
    if s[0] <= 1e-12 * max(scale, 1.0):
        raise GeometryError("all calibration points are identical")
    if s[1] <= _RANK_TOL * s[0]:
        raise GeometryError("calibration points are collinear")


def _fit_vertical_plane_svd(points: np.ndarray) -> ScreenPlane:
    """
    Total-least-squares fit of a plane that contains the Y direction.

    Only the (x, z) footprint of the points matters. Of the two principal axes of the
    centered footprint, the normal is the one closer to the mean viewing direction
    (origin to centroid); a tall narrow screen spreads more in depth than across, so
    the smallest axis alone can pick the viewing ray instead of the screen.
    """
    xz = points[:, [0, 2]]
    scale = max(float(np.max(np.abs(xz))), 1.0)
    centroid = xz.mean(axis=0)
    centered = xz - centroid
    _, s, vh = np.linalg.svd(centered, full_matrices=False)
    if s[0] <= 1e-12 * scale:
        raise GeometryError("calibration points share one horizontal footprint")
    c_norm = float(np.linalg.norm(centroid))
    if c_norm <= 1e-9 * scale:
        raise GeometryError("calibration points have no mean viewing direction")
    view = centroid / c_norm
    best = int(np.argmax(np.abs(vh @ view)))
    nx, nz = (float(v) for v in vh[best, :])
    norm = float(np.hypot(nx, nz))
    nx, nz = nx / norm, nz / norm
    d = -(nx * float(centroid[0]) + nz * float(centroid[1]))
    if d < 0.0:
        nx, nz, d = -nx, -nz, -d
    if d <= 1e-9 * scale:
        raise GeometryError("fitted screen plane passes through the eye point")
    return ScreenPlane(a=nx, b=0.0, c=nz, d=d)


def fit_screen_plane(mappings: Sequence[Mapping], *, use_field_angles: bool, depth_m: float) -> ScreenPlane:
    """
    Screen plane implied by the calibration points.

    Field angles already place every point on z = -depth, so the plane is that one.
    Otherwise the points lie on a sphere of radius depth around the eye and the plane
    is the total-least-squares vertical plane through them; its perpendicular follows
    the mean viewing direction of a symmetric sample set.
    """
    points = points_array(mappings)
    check_spread(points)
    if use_field_angles:
        plane = ScreenPlane(a=0.0, b=0.0, c=1.0, d=float(depth_m))
    else:
        plane = _fit_vertical_plane_svd(points)
    logger.debug("screen plane: %.6g x + %.6g y + %.6g z + %.6g = 0", *plane.coefficients)
    return plane
