"""
PV I-V Curve Simulator

Single-diode model of a photovoltaic module: I-V and P-V curves under
arbitrary irradiance and cell temperature, maximum power point, fill
factor, efficiency, and calibration of (n, Rs, Rsh) to the nameplate.

Modules:
    data_input: Module nameplate data, diode parameters, operating conditions
    calculations: Condition correction, curve solver, analysis, calibration
    utils: Constants, configuration and logging
"""

from .data_input import (
    DEFAULT_DIODE_PARAMS,
    ELGIN_ELG590_M72HEP,
    DiodeModelParams,
    ModuleSpec,
    OperatingCondition,
)
from .calculations import (
    Curve,
    CurvePoint,
    adjusted_isc,
    adjusted_voc,
    analyze,
    calibrate,
    compute_curve,
    simulate,
)
from .utils.config import ConfigurationError, SimulationConfig, load_config

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_DIODE_PARAMS",
    "ELGIN_ELG590_M72HEP",
    "DiodeModelParams",
    "ModuleSpec",
    "OperatingCondition",
    "Curve",
    "CurvePoint",
    "adjusted_isc",
    "adjusted_voc",
    "analyze",
    "calibrate",
    "compute_curve",
    "simulate",
    "ConfigurationError",
    "SimulationConfig",
    "load_config",
]
