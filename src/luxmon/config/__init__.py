"""Configuration objects and helpers for luxmon.

:mod:`runtime` loads the YAML settings for the serial link, solver, buffers
and storage; :mod:`calibration` holds the power-law constants that a settings
surface may change while the pipeline runs.
"""

from .calibration import CalibrationParameters, CalibrationStore
from .runtime import LuxmonConfig, config_from_mapping, default_config_path, load_config, save_config

__all__ = [
    "CalibrationParameters",
    "CalibrationStore",
    "LuxmonConfig",
    "config_from_mapping",
    "default_config_path",
    "load_config",
    "save_config",
]
