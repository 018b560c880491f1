import math

import numpy as np
import pytest

from hmdmesh.core.geometry import XYZ, XYLatLong, direction_angles


@pytest.fixture
def corner_samples():
    """Screen corners seen at (+-30, +-20) degrees; positive longitude is to the left."""
    return [
        XYLatLong(x=0.0, y=0.0, latitude=-20.0, longitude=30.0),
        XYLatLong(x=1.0, y=0.0, latitude=-20.0, longitude=-30.0),
        XYLatLong(x=0.0, y=1.0, latitude=20.0, longitude=30.0),
        XYLatLong(x=1.0, y=1.0, latitude=20.0, longitude=-30.0),
    ]


def make_tilted_samples(yaw_deg: float, distance: float, half_w: float, half_h: float, n: int = 5):
    """
    Raster grid on a flat vertical screen whose perpendicular from the eye has the given
    yaw, reported as longitude/latitude on a sphere.
    """
    yaw = math.radians(yaw_deg)
    normal = np.array([math.sin(yaw), 0.0, math.cos(yaw)])
    h_axis = np.cross([0.0, 1.0, 0.0], normal)
    h_axis /= np.linalg.norm(h_axis)
    v_axis = np.cross(normal, h_axis)
    foot = -distance * normal

    samples = []
    for v in np.linspace(-half_h, half_h, n):
        for h in np.linspace(-half_w, half_w, n):
            p = XYZ.from_array(foot + h * h_axis + v * v_axis)
            ll = direction_angles(p, field_angles=False).to_degrees()
            samples.append(
                XYLatLong(
                    x=float((h + half_w) / (2 * half_w)),
                    y=float((v + half_h) / (2 * half_h)),
                    latitude=ll.latitude,
                    longitude=ll.longitude,
                )
            )
    return samples


@pytest.fixture
def tilted_samples():
    return make_tilted_samples
