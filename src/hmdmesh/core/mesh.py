from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

from hmdmesh.core.geometry import Mapping
from hmdmesh.core.screen import FittedPlane, project_mappings

logger = logging.getLogger(__name__)

Point2 = tuple[float, float]
MeshEntry = tuple[Point2, Point2]


@dataclass(frozen=True)
class MeshDescription:
    """
    Ordered (from, to) pairs: physical-display coordinates -> canonical-display coordinates.

    Order follows the calibration table and is what the renderer expects; nothing here
    sorts or deduplicates. `signed` is the convention of the `to` ends and
    `from_signed` the one the caller used for the `from` ends; each is [-1,1] when
    set, [0,1] otherwise.
    """

    entries: tuple[MeshEntry, ...]
    signed: bool = False
    from_signed: bool = False

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[MeshEntry]:
        return iter(self.entries)

    def from_array(self) -> np.ndarray:
        return np.array([e[0] for e in self.entries], dtype=np.float64).reshape(-1, 2)

    def to_array(self) -> np.ndarray:
        return np.array([e[1] for e in self.entries], dtype=np.float64).reshape(-1, 2)

    def to_list(self) -> list[list[list[float]]]:
        return [[[f[0], f[1]], [t[0], t[1]]] for f, t in self.entries]

    def reflected_horizontally(self) -> MeshDescription:
        """Mirror x of both ends, each in its own convention: 1-x for [0,1], -x for [-1,1]."""

        def flip(x: float, signed: bool) -> float:
            return -x if signed else 1.0 - x

        return MeshDescription(
            entries=tuple(
                ((flip(f[0], self.from_signed), f[1]), (flip(t[0], self.signed), t[1])) for f, t in self.entries
            ),
            signed=self.signed,
            from_signed=self.from_signed,
        )


def find_mesh(
    mappings: Sequence[Mapping], fitted: FittedPlane, *, signed: bool = False, from_signed: bool = False
) -> MeshDescription:
    """
    Distortion mesh for the left-eye screen.

    Each point is projected through the already fitted plane and normalized over the
    screen bounds; with `signed` the result is mapped from [0,1] to [-1,1]. Points
    outside supplied bounds extrapolate past the unit square.
    """
    projected = project_mappings(mappings, fitted.plane)
    entries = []
    for m, p in zip(mappings, projected):
        u, w = fitted.normalize(*fitted.plane.local_coordinates(p))
        if signed:
            u, w = 2.0 * u - 1.0, 2.0 * w - 1.0
        entries.append(((m.xy_lat_long.x, m.xy_lat_long.y), (u, w)))

    mesh = MeshDescription(entries=tuple(entries), signed=signed, from_signed=from_signed)
    to = mesh.to_array()
    if to.size:
        logger.debug(
            "mesh: %d entries, to x in [%.4f, %.4f], y in [%.4f, %.4f]",
            len(mesh),
            float(to[:, 0].min()),
            float(to[:, 0].max()),
            float(to[:, 1].min()),
            float(to[:, 1].max()),
        )
    return mesh
