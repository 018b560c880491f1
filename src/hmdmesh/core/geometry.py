from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from hmdmesh.errors import GeometryError

# Smallest |Ax + By + Cz| accepted when intersecting a ray with a plane.
_PROJECTION_EPS = 1e-12


@dataclass(frozen=True)
class RectBounds:
    """
    Axis-aligned rectangle. The unit (degrees, meters) is fixed by whoever builds it.

    Callers keep left <= right and bottom <= top.
    """

    left: float
    right: float
    top: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    def reflected_horizontally(self) -> RectBounds:
        """Mirror image about x=0 (left eye <-> right eye)."""
        return RectBounds(left=-self.right, right=-self.left, top=self.top, bottom=self.bottom)


@dataclass(frozen=True)
class LongLat:
    """Angle pair: longitude is the angle in x, latitude the angle in y."""

    longitude: float
    latitude: float

    def as_array(self) -> np.ndarray:
        return np.array([self.longitude, self.latitude], dtype=np.float64)

    def to_degrees(self) -> LongLat:
        return LongLat(math.degrees(self.longitude), math.degrees(self.latitude))

    def to_radians(self) -> LongLat:
        return LongLat(math.radians(self.longitude), math.radians(self.latitude))


@dataclass(frozen=True)
class XYLatLong:
    """One calibration sample: normalized display location and the angles measured there."""

    x: float
    y: float
    latitude: float
    longitude: float

    @property
    def long_lat(self) -> LongLat:
        return LongLat(longitude=self.longitude, latitude=self.latitude)

    @property
    def xy(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class XYZ:
    x: float
    y: float
    z: float

    @classmethod
    def from_array(cls, v: np.ndarray) -> XYZ:
        v = np.asarray(v, dtype=np.float64).reshape(3)
        return cls(float(v[0]), float(v[1]), float(v[2]))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def rotation_about_y(self) -> float:
        """
        Yaw in radians: 0 looks along -Z, positive turns toward -X.

        The X axis in atan space is head-space -Z and the Y axis in atan space is
        head-space -X, hence atan2(-x, -z).
        """
        scale = max(abs(self.x), abs(self.y), abs(self.z))
        if math.hypot(self.x, self.z) <= _PROJECTION_EPS * scale:
            raise GeometryError(f"direction {self} lies on the Y axis and has no yaw")
        return math.atan2(-self.x, -self.z)

    def project_onto_plane(self, a: float, b: float, c: float, d: float) -> XYZ:
        """
        Central projection from the origin through this point onto Ax + By + Cz + D = 0.

        Solves A*s*x + B*s*y + C*s*z + D = 0 for s and returns s*(x, y, z).
        The ray must actually hit the plane in front of the origin (s > 0).
        """
        denom = a * self.x + b * self.y + c * self.z
        if abs(denom) < _PROJECTION_EPS:
            raise GeometryError(f"ray through {self} is parallel to the plane")
        s = -d / denom
        if not s > 0.0:
            raise GeometryError(f"plane lies behind the origin along the ray through {self}")
        return XYZ(s * self.x, s * self.y, s * self.z)

    def distance_from(self, other: XYZ) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return math.sqrt(dx * dx + dy * dy + dz * dz)

    def reflected_horizontally(self) -> XYZ:
        return XYZ(-self.x, self.y, self.z)

    def __str__(self) -> str:
        return f"({self.x:7.4g}, {self.y:7.4g}, {self.z:7.4g})"


@dataclass(frozen=True)
class Mapping:
    """A calibration sample together with its 3D location in head space."""

    xy_lat_long: XYLatLong
    xyz: XYZ


def angle_direction(longitude: float, latitude: float) -> XYZ:
    """
    Unit head-space direction for a (longitude, latitude) pair in radians.

    Longitude is the yaw returned by `XYZ.rotation_about_y`, latitude the elevation
    above the XZ plane. At the poles the direction is exactly (0, +-1, 0).
    """
    cos_lat = math.cos(latitude)
    if abs(cos_lat) < 1e-15:
        return XYZ(0.0, math.copysign(1.0, latitude), 0.0)
    return XYZ(
        -math.sin(longitude) * cos_lat,
        math.sin(latitude),
        -math.cos(longitude) * cos_lat,
    )


def field_angle_point(longitude: float, latitude: float, depth: float) -> XYZ:
    """
    Head-space point for field angles (radians) on the plane z = -depth.

    Field angles measure x and y independently from the optical axis, so the point
    is (-depth*tan(longitude), depth*tan(latitude), -depth).
    """
    if abs(longitude) >= math.pi / 2 or abs(latitude) >= math.pi / 2:
        raise GeometryError(f"field angles must be inside (-90, 90) degrees, got {(longitude, latitude)}")
    return XYZ(-depth * math.tan(longitude), depth * math.tan(latitude), -depth)


def direction_angles(p: XYZ, *, field_angles: bool) -> LongLat:
    """
    Inverse of `angle_direction` (field_angles=False) or `field_angle_point`
    (field_angles=True). Returns radians.
    """
    longitude = p.rotation_about_y()
    if field_angles:
        if not p.z < 0.0:
            raise GeometryError(f"point {p} is not in front of the eye")
        latitude = math.atan2(p.y, -p.z)
    else:
        latitude = math.atan2(p.y, math.hypot(p.x, p.z))
    return LongLat(longitude=longitude, latitude=latitude)
