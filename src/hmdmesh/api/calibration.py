from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from hmdmesh.config import Config, check_config
from hmdmesh.core.geometry import XYZ, Mapping, XYLatLong, angle_direction, field_angle_point
from hmdmesh.core.mesh import MeshDescription, find_mesh
from hmdmesh.core.plane_fit import fit_screen_plane
from hmdmesh.core.screen import FittedPlane, ScreenDescription, find_screen
from hmdmesh.core.verify import AngleVerification, verify_angles
from hmdmesh.errors import InputError

logger = logging.getLogger(__name__)

MIN_SAMPLES = 3


@dataclass(frozen=True)
class CalibrationResult:
    """
    Output of one run, already in the requested eye's frame.

    `verification` is None unless `Config.verify_angles` is set; it always refers to
    the left-eye geometry the angles were measured in.
    """

    screen: ScreenDescription
    mesh: MeshDescription
    fitted: FittedPlane
    verification: AngleVerification | None = None

    @property
    def acceptable(self) -> bool:
        return self.verification is None or self.verification.ok


def check_samples(samples: Sequence[XYLatLong], config: Config) -> None:
    if len(samples) < MIN_SAMPLES:
        raise InputError(f"need >= {MIN_SAMPLES} calibration samples, got {len(samples)}")
    for i, s in enumerate(samples):
        values = (s.x, s.y, s.latitude, s.longitude)
        if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in values):
            raise InputError(f"sample {i}: non-finite value in {values}")
        if config.use_field_angles:
            if not (abs(s.longitude) < 90.0 and abs(s.latitude) < 90.0):
                raise InputError(f"sample {i}: field angles must be inside (-90, 90) degrees")
        elif not abs(s.latitude) < 90.0:
            raise InputError(f"sample {i}: latitude must be inside (-90, 90) degrees")

    if config.use_right_eye:
        # The right-eye mesh mirrors display x inside the table's own range.
        lo = -1.0 if config.signed_input_coordinates else 0.0
        for i, s in enumerate(samples):
            if not lo <= s.x <= 1.0:
                raise InputError(f"sample {i}: display x {s.x} outside [{lo:g}, 1] cannot be mirrored")


def build_mappings(samples: Iterable[XYLatLong], config: Config) -> list[Mapping]:
    """
    Attach a head-space point to every sample (angles in degrees).

    Field angles land on the plane z = -depth; other angles on the sphere of radius
    depth around the eye.
    """
    depth_m = config.depth_meters
    mappings = []
    for s in samples:
        lon = math.radians(s.longitude)
        lat = math.radians(s.latitude)
        if config.use_field_angles:
            xyz = field_angle_point(lon, lat, depth_m)
        else:
            d = angle_direction(lon, lat)
            xyz = XYZ(depth_m * d.x, depth_m * d.y, depth_m * d.z)
        mappings.append(Mapping(xy_lat_long=s, xyz=xyz))
    return mappings


def angles_to_config(samples: Sequence[XYLatLong], config: Config | None = None) -> CalibrationResult:
    """
    Screen description and distortion mesh for a table of display locations and angles.

    The plane fit and screen bounds are global over all samples and finish before any
    mesh point is projected. The right eye is the mirror image of the left-eye result.

    Raises InputError or GeometryError; never returns partial output.
    """
    config = config or Config()
    check_config(config)
    samples = list(samples)
    check_samples(samples, config)

    mappings = build_mappings(samples, config)
    plane = fit_screen_plane(mappings, use_field_angles=config.use_field_angles, depth_m=config.depth_meters)
    screen, fitted = find_screen(mappings, plane, config)
    mesh = find_mesh(
        mappings, fitted, signed=config.signed_coordinates, from_signed=config.signed_input_coordinates
    )

    verification = None
    if config.verify_angles:
        verification = verify_angles(mappings, fitted, mesh, config)

    if config.use_right_eye:
        screen = screen.reflected_horizontally()
        fitted = fitted.reflected_horizontally()
        mesh = mesh.reflected_horizontally()

    log = logger.info if config.verbose else logger.debug
    log("%s eye: %d samples -> %d mesh entries", "right" if config.use_right_eye else "left", len(samples), len(mesh))
    return CalibrationResult(screen=screen, mesh=mesh, fitted=fitted, verification=verification)
