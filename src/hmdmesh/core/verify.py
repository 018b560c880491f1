from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from hmdmesh.config import Config
from hmdmesh.core.geometry import Mapping, direction_angles
from hmdmesh.core.mesh import MeshDescription
from hmdmesh.core.screen import FittedPlane
from hmdmesh.errors import GeometryError, ToleranceWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AngleVerification:
    max_angle_diff_degrees: float
    worst_index: int
    tolerance_degrees: float
    diff_degrees: tuple[float, ...]

    @property
    def ok(self) -> bool:
        return self.max_angle_diff_degrees <= self.tolerance_degrees


def _wrap_degrees(a: float) -> float:
    return (a + 180.0) % 360.0 - 180.0


def verify_angles(
    mappings: Sequence[Mapping], fitted: FittedPlane, mesh: MeshDescription, config: Config
) -> AngleVerification:
    """
    Re-derive each sample's angles from its canonical mesh coordinate and compare.

    The canonical coordinate is taken about the screen centre through the matrix
    [[xx, xy], [yx, yy]], placed back on the fitted plane, and turned into
    (longitude, latitude) with the same convention used to build the points. The
    per-sample difference is the larger of the two angular errors.

    Exceeding `max_angle_diff_degrees` emits a ToleranceWarning; the result is
    returned either way. `mesh` must be the left-eye mesh built from `fitted`.
    """
    if len(mesh) != len(mappings):
        raise ValueError(f"mesh has {len(mesh)} entries for {len(mappings)} samples")

    m = np.array([[config.xx, config.xy], [config.yx, config.yy]], dtype=np.float64)
    diffs = []
    for i, (mapping, (_from, to)) in enumerate(zip(mappings, mesh)):
        t = np.asarray(to, dtype=np.float64)
        if mesh.signed:
            t = 0.5 * (t + 1.0)
        u, w = 0.5 + m @ (t - 0.5)
        p = fitted.plane.point_at(*fitted.denormalize(float(u), float(w)))
        try:
            angles = direction_angles(p, field_angles=config.use_field_angles).to_degrees()
        except GeometryError as e:
            raise GeometryError(f"sample {i}: {e}") from e
        sample = mapping.xy_lat_long
        d_lon = abs(_wrap_degrees(angles.longitude - sample.longitude))
        d_lat = abs(angles.latitude - sample.latitude)
        diffs.append(max(d_lon, d_lat))

    diff_arr = np.asarray(diffs, dtype=np.float64)
    worst = int(np.argmax(diff_arr)) if diff_arr.size else -1
    result = AngleVerification(
        max_angle_diff_degrees=float(diff_arr[worst]) if diff_arr.size else 0.0,
        worst_index=worst,
        tolerance_degrees=config.max_angle_diff_degrees,
        diff_degrees=tuple(float(d) for d in diff_arr),
    )

    if not math.isfinite(result.max_angle_diff_degrees) or not result.ok:
        msg = (
            f"angle verification: sample {worst} differs by {result.max_angle_diff_degrees:.4f} degrees "
            f"(tolerance {result.tolerance_degrees:.4f})"
        )
        logger.warning(msg)
        warnings.warn(msg, ToleranceWarning, stacklevel=2)
    else:
        logger.debug("angle verification: max difference %.3g degrees", result.max_angle_diff_degrees)
    return result
