from __future__ import annotations


class InputError(ValueError):
    """Malformed or insufficient calibration input."""


class GeometryError(ArithmeticError):
    """Degenerate geometry: unusable plane fit, empty field of view, singular projection."""


class ToleranceWarning(UserWarning):
    """Re-derived angles disagree with the measured ones by more than the configured tolerance."""
