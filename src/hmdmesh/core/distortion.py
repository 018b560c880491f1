from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class RadialDistortion:
    """
    Radial lens distortion on tangent-space coordinates (x=tan(angle_x), y=tan(angle_y)).

      r' = r * (1 + k1 r^2 + k2 r^4 + k3 r^6)

    k1 > 0 stretches the edges (pincushion), k1 < 0 pulls them in (barrel).
    """

    k1: float = 0.0
    k2: float = 0.0
    k3: float = 0.0

    def distort(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        r2 = x * x + y * y
        radial = 1.0 + self.k1 * r2 + self.k2 * r2 * r2 + self.k3 * r2 * r2 * r2
        return x * radial, y * radial
