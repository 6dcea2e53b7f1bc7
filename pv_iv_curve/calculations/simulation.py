"""
End-to-end simulation of one operating condition.

Near STC the diode parameters are first calibrated against the nameplate
MPP; the curve is then computed and analyzed with the parameters in use.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..data_input.module_data import DiodeModelParams, ModuleSpec, OperatingCondition
from ..data_input.validation import DataValidator
from ..utils.config import SimulationConfig
from ..utils.constants import DEFAULT_RESOLUTION
from .calibration import CalibrationResult, run_calibration
from .curve_analysis import CurveAnalysis, analyze
from .single_diode import Curve, compute_curve

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """
    Curve and indicators for one operating condition.

    Attributes:
        curve: Computed I-V / P-V curve
        analysis: MPP, fill factor, efficiency and diagnostics
        params: Diode parameters the curve was computed with
        calibration: Calibration outcome, None when calibration did not run
    """
    curve: Curve
    analysis: CurveAnalysis
    params: DiodeModelParams
    calibration: Optional[CalibrationResult] = None


def simulate(
    module: ModuleSpec,
    params: DiodeModelParams,
    condition: OperatingCondition,
    resolution: int = DEFAULT_RESOLUTION,
    auto_calibrate: bool = True,
) -> SimulationResult:
    """
    Simulate the module at one operating condition.

    Args:
        module: Module nameplate data
        params: Starting single-diode parameters
        condition: Irradiance and cell temperature
        resolution: Number of voltage steps
        auto_calibrate: Run the calibrator when the condition is near STC

    Returns:
        SimulationResult with the (possibly calibrated) parameters in use
    """
    validator = DataValidator()
    for result in (validator.validate_module_spec(module), validator.validate_diode_params(params)):
        for message in result.errors + result.warnings:
            logger.warning(message)

    calibration = None
    if auto_calibrate and condition.is_near_stc:
        calibration = run_calibration(module, params)
        params = calibration.params

    curve = compute_curve(module, params, condition.irradiance, condition.temperature, resolution)
    analysis = analyze(curve, module)

    for diagnostic in analysis.failed_diagnostics():
        logger.warning(f"Diagnostic {diagnostic.name} failed: {diagnostic.message}")

    logger.info(
        f"G={condition.irradiance:g} W/m², T={condition.temperature:g} °C: "
        f"Pmpp={analysis.mpp.power:.1f} W, FF={analysis.fill_factor:.3f}, "
        f"efficiency={analysis.efficiency * 100:.2f}%"
    )

    return SimulationResult(curve=curve, analysis=analysis, params=params, calibration=calibration)


def simulate_from_config(config: SimulationConfig) -> SimulationResult:
    """Run simulate() with the module, parameters and condition of a configuration."""
    return simulate(
        module=config.to_module_spec(),
        params=config.to_diode_params(),
        condition=config.to_condition(),
        resolution=config.resolution,
        auto_calibrate=config.auto_calibrate,
    )
