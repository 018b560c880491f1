from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from hmdmesh.config import Config
from hmdmesh.core.geometry import XYZ, Mapping, RectBounds
from hmdmesh.core.plane_fit import ScreenPlane
from hmdmesh.errors import GeometryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScreenDescription:
    """
    Virtual screen as reported to a renderer.

    `bounds` is the screen rectangle in plane-local meters around the foot of the
    perpendicular from the eye; the centre of projection is derived from it so that
    reflecting twice reproduces the description exactly.
    """

    h_fov_degrees: float
    v_fov_degrees: float
    overlap_percent: float
    x_cop: float
    y_cop: float
    bounds: RectBounds

    @classmethod
    def from_bounds(
        cls, *, h_fov_degrees: float, v_fov_degrees: float, overlap_percent: float, bounds: RectBounds
    ) -> ScreenDescription:
        return cls(
            h_fov_degrees=h_fov_degrees,
            v_fov_degrees=v_fov_degrees,
            overlap_percent=overlap_percent,
            x_cop=(0.0 - bounds.left) / bounds.width,
            y_cop=(0.0 - bounds.bottom) / bounds.height,
            bounds=bounds,
        )

    def reflected_horizontally(self) -> ScreenDescription:
        return ScreenDescription.from_bounds(
            h_fov_degrees=self.h_fov_degrees,
            v_fov_degrees=self.v_fov_degrees,
            overlap_percent=self.overlap_percent,
            bounds=self.bounds.reflected_horizontally(),
        )


@dataclass(frozen=True)
class FittedPlane:
    """Working geometry shared by the mesh and verification stages."""

    plane: ScreenPlane
    screen_left: XYZ
    screen_right: XYZ
    max_y: float
    bounds: RectBounds

    def normalize(self, h: float, v: float) -> tuple[float, float]:
        """Plane-local meters -> [0,1]x[0,1] over `bounds` (values outside extrapolate)."""
        b = self.bounds
        return (h - b.left) / b.width, (v - b.bottom) / b.height

    def denormalize(self, u: float, w: float) -> tuple[float, float]:
        b = self.bounds
        return b.left + u * b.width, b.bottom + w * b.height

    def reflected_horizontally(self) -> FittedPlane:
        return FittedPlane(
            plane=self.plane.reflected_horizontally(),
            screen_left=self.screen_right.reflected_horizontally(),
            screen_right=self.screen_left.reflected_horizontally(),
            max_y=self.max_y,
            bounds=self.bounds.reflected_horizontally(),
        )


def project_mappings(mappings: Sequence[Mapping], plane: ScreenPlane) -> list[XYZ]:
    projected = []
    for i, m in enumerate(mappings):
        try:
            projected.append(plane.project(m.xyz))
        except GeometryError as e:
            raise GeometryError(f"sample {i}: {e}") from e
    return projected


def _angle_span_degrees(lo: float, hi: float, distance: float) -> float:
    return math.degrees(math.atan2(hi, distance) - math.atan2(lo, distance))


def find_screen(
    mappings: Sequence[Mapping], plane: ScreenPlane, config: Config
) -> tuple[ScreenDescription, FittedPlane]:
    """
    Left-eye screen description for calibration points and their fitted plane.

    The horizontal extent runs between the projected points with the smallest and
    largest horizontal screen coordinate; its field of view is the difference of their
    yaws. The vertical extent runs between the lowest and highest projected points.
    Supplied bounds (degrees from the perpendicular) replace both extents.
    """
    projected = project_mappings(mappings, plane)
    local = np.array([plane.local_coordinates(p) for p in projected], dtype=np.float64).reshape(-1, 2)
    distance = plane.d

    if config.compute_screen_bounds:
        i_left = int(np.argmin(local[:, 0]))
        i_right = int(np.argmax(local[:, 0]))
        screen_left = projected[i_left]
        screen_right = projected[i_right]
        bounds = RectBounds(
            left=float(local[i_left, 0]),
            right=float(local[i_right, 0]),
            top=float(np.max(local[:, 1])),
            bottom=float(np.min(local[:, 1])),
        )
        h_fov = math.degrees(screen_left.rotation_about_y() - screen_right.rotation_about_y())
    else:
        supplied = config.supplied_screen_bounds
        if supplied is None:
            raise GeometryError("no screen bounds supplied")
        bounds = RectBounds(
            left=distance * math.tan(math.radians(supplied.left)),
            right=distance * math.tan(math.radians(supplied.right)),
            top=distance * math.tan(math.radians(supplied.top)),
            bottom=distance * math.tan(math.radians(supplied.bottom)),
        )
        screen_left = plane.point_at(bounds.left, 0.0)
        screen_right = plane.point_at(bounds.right, 0.0)
        h_fov = supplied.right - supplied.left

    v_fov = _angle_span_degrees(bounds.bottom, bounds.top, distance)
    if not (math.isfinite(h_fov) and h_fov > 0.0 and bounds.width > 0.0):
        raise GeometryError(f"degenerate horizontal field of view: {h_fov:.6g} degrees")
    if not (math.isfinite(v_fov) and v_fov > 0.0 and bounds.height > 0.0):
        raise GeometryError(f"degenerate vertical field of view: {v_fov:.6g} degrees")

    # Left-eye screen turned outward by `yaw`; the right eye mirrors it.
    yaw = math.degrees(plane.view_axis_yaw())
    overlap = 100.0 * (h_fov - 2.0 * yaw) / h_fov

    screen = ScreenDescription.from_bounds(
        h_fov_degrees=h_fov,
        v_fov_degrees=v_fov,
        overlap_percent=overlap,
        bounds=bounds,
    )
    fitted = FittedPlane(
        plane=plane,
        screen_left=screen_left,
        screen_right=screen_right,
        max_y=max(abs(bounds.top), abs(bounds.bottom)),
        bounds=bounds,
    )

    log = logger.info if config.verbose else logger.debug
    log("screen left %s right %s, max |y| %.6g", screen_left, screen_right, fitted.max_y)
    log(
        "hFOV %.4f deg, vFOV %.4f deg, overlap %.3f%%, COP (%.4f, %.4f)",
        screen.h_fov_degrees,
        screen.v_fov_degrees,
        screen.overlap_percent,
        screen.x_cop,
        screen.y_cop,
    )
    if overlap > 100.0 + 1e-9:
        logger.warning("screen turns inward by %.3f degrees; overlap %.3f%% exceeds 100", -yaw, overlap)
    return screen, fitted
