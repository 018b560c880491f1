import math

import numpy as np
import pytest

from hmdmesh.core.geometry import (
    XYZ,
    LongLat,
    RectBounds,
    XYLatLong,
    angle_direction,
    direction_angles,
    field_angle_point,
)
from hmdmesh.errors import GeometryError


def test_angle_direction_roundtrips_longitude_and_latitude():
    rng = np.random.default_rng(0)
    lon = rng.uniform(-np.pi + 1e-6, np.pi, size=(1000,))
    lat = rng.uniform(-1.5, 1.5, size=(1000,))
    for lo, la in zip(lon, lat):
        d = angle_direction(float(lo), float(la))
        assert abs(math.sqrt(d.x * d.x + d.y * d.y + d.z * d.z) - 1.0) < 1e-12
        assert abs(d.rotation_about_y() - lo) < 1e-10
        back = direction_angles(d, field_angles=False)
        assert abs(back.latitude - la) < 1e-10


def test_angle_direction_conventions():
    ahead = angle_direction(0.0, 0.0)
    assert (ahead.x, ahead.y, ahead.z) == (-0.0, 0.0, -1.0)
    left = angle_direction(math.pi / 2, 0.0)
    assert left.x == pytest.approx(-1.0)
    assert abs(left.z) < 1e-15
    up = angle_direction(0.0, math.radians(10.0))
    assert up.y > 0.0


def test_angle_direction_at_poles_is_deterministic():
    assert angle_direction(0.3, math.pi / 2) == XYZ(0.0, 1.0, 0.0)
    assert angle_direction(-2.0, -math.pi / 2) == XYZ(0.0, -1.0, 0.0)
    with pytest.raises(GeometryError):
        angle_direction(0.3, math.pi / 2).rotation_about_y()


def test_field_angle_point_lies_on_depth_plane():
    p = field_angle_point(math.radians(30.0), math.radians(20.0), 2.0)
    assert p.z == -2.0
    assert p.x == pytest.approx(-2.0 * math.tan(math.radians(30.0)))
    assert math.degrees(p.rotation_about_y()) == pytest.approx(30.0)
    back = direction_angles(p, field_angles=True).to_degrees()
    assert back.latitude == pytest.approx(20.0)
    with pytest.raises(GeometryError):
        field_angle_point(math.pi / 2, 0.0, 2.0)


def test_project_onto_plane_hits_plane_along_ray():
    a, b, c, d = 0.1, 0.2, 0.97, 1.5
    p = XYZ(0.3, -0.2, -1.0)
    q = p.project_onto_plane(a, b, c, d)
    assert abs(a * q.x + b * q.y + c * q.z + d) < 1e-12
    assert np.linalg.norm(np.cross(p.as_array(), q.as_array())) < 1e-12
    assert float(p.as_array() @ q.as_array()) > 0.0


def test_project_onto_plane_rejects_parallel_and_backward_rays():
    with pytest.raises(GeometryError, match="parallel"):
        XYZ(1.0, 0.0, 0.0).project_onto_plane(0.0, 0.0, 1.0, 2.0)
    with pytest.raises(GeometryError, match="behind"):
        XYZ(0.0, 0.0, 1.0).project_onto_plane(0.0, 0.0, 1.0, 2.0)


def test_distance_from():
    assert XYZ(1.0, 2.0, 3.0).distance_from(XYZ(4.0, 6.0, 3.0)) == 5.0


def test_rect_bounds_reflection_is_involutive():
    b = RectBounds(left=-0.3, right=0.7, top=0.4, bottom=-0.2)
    r = b.reflected_horizontally()
    assert r == RectBounds(left=-0.7, right=0.3, top=0.4, bottom=-0.2)
    assert r.reflected_horizontally() == b
    assert r.width == b.width


def test_long_lat_accessors():
    s = XYLatLong(x=0.25, y=0.75, latitude=-10.0, longitude=5.0)
    assert s.long_lat == LongLat(longitude=5.0, latitude=-10.0)
    assert s.xy == (0.25, 0.75)
    assert s.long_lat.to_radians().to_degrees().longitude == pytest.approx(5.0)


def test_yaw_guard_scales_with_vector_length():
    tiny = XYZ(1e-14, 0.0, -1e-14)
    assert tiny.rotation_about_y() == pytest.approx(-math.pi / 4)
    with pytest.raises(GeometryError, match="Y axis"):
        XYZ(1e-3, 1e12, 0.0).rotation_about_y()
    with pytest.raises(GeometryError):
        XYZ(0.0, 0.0, 0.0).rotation_about_y()
