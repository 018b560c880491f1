from hmdmesh.api.calibration import CalibrationResult, angles_to_config, build_mappings
from hmdmesh.api.table_io import load_angle_table, load_display_config, save_display_config

__all__ = [
    "CalibrationResult",
    "angles_to_config",
    "build_mappings",
    "load_angle_table",
    "load_display_config",
    "save_display_config",
]
