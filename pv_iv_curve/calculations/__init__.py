"""
Calculations module for the PV I-V curve simulator.

Implements the single-diode model of a PV module.

Modules:
    conditions: Irradiance/temperature correction of Isc and Voc
    single_diode: Newton-Raphson I-V curve solver
    curve_analysis: MPP, fill factor, efficiency and diagnostics
    calibration: Two-stage grid search for (n, Rs, Rsh)
    simulation: Curve, analysis and calibration for one condition
"""

from .calibration import CalibrationResult, calibrate, run_calibration
from .conditions import adjusted_isc, adjusted_voc, is_near_stc, thermal_voltage
from .curve_analysis import CurveAnalysis, Diagnostic, analyze, find_mpp
from .simulation import SimulationResult, simulate, simulate_from_config
from .single_diode import (
    Curve,
    CurvePoint,
    compute_curve,
    compute_curve_family,
    curves_to_dataframe,
    irradiance_sweep,
    temperature_sweep,
)

__all__ = [
    "CalibrationResult",
    "calibrate",
    "run_calibration",
    "adjusted_isc",
    "adjusted_voc",
    "is_near_stc",
    "thermal_voltage",
    "CurveAnalysis",
    "Diagnostic",
    "analyze",
    "find_mpp",
    "SimulationResult",
    "simulate",
    "simulate_from_config",
    "Curve",
    "CurvePoint",
    "compute_curve",
    "compute_curve_family",
    "curves_to_dataframe",
    "irradiance_sweep",
    "temperature_sweep",
]
