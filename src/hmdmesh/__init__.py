from hmdmesh import config
from hmdmesh.api import CalibrationResult, angles_to_config, load_angle_table, load_display_config, save_display_config
from hmdmesh.config import Config
from hmdmesh.core.geometry import XYLatLong
from hmdmesh.errors import GeometryError, InputError, ToleranceWarning

__all__ = [
    "config",
    "CalibrationResult",
    "Config",
    "GeometryError",
    "InputError",
    "ToleranceWarning",
    "XYLatLong",
    "angles_to_config",
    "load_angle_table",
    "load_display_config",
    "save_display_config",
]
