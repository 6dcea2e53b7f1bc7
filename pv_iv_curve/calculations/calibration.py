"""
Single-diode parameter calibration.

Searches the (n, Rs, Rsh) space for the triplet whose modelled maximum
power point at STC lies closest to the nameplate (Vmpp, Impp):

1. Coarse grid: 6 ideality factors × 7 series × 7 shunt resistances.
2. Refinement: 5 × 5 × 5 candidates around the best coarse triplet,
   clamped to physically valid ranges.

The candidate set depends only on the module, so the winner of one call is
the fixed point of the next: calibrating twice leaves the parameters
unchanged on the second call.
"""

import itertools
import logging
import math
from dataclasses import dataclass
from typing import Iterator, Tuple

from ..data_input.module_data import DiodeModelParams, ModuleSpec
from ..utils.constants import (
    CALIBRATION_BOUNDS,
    CALIBRATION_MIN_IMPROVEMENT,
    CALIBRATION_RESOLUTION,
    FINE_N_OFFSETS,
    FINE_RS_FACTORS,
    FINE_RSH_FACTORS,
    STC_IRRADIANCE,
    STC_TEMPERATURE,
    get_coarse_grid,
)
from ..utils.logging_config import log_execution_time
from .single_diode import sweep_curve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationResult:
    """
    Outcome of a calibration run.

    Attributes:
        params: Parameters to use (the input ones when not adopted)
        adopted: Whether a better triplet replaced the input parameters
        score_before: MPP distance of the input parameters
        score_after: MPP distance of the returned parameters
        evaluations: Number of scored parameter sets
    """
    params: DiodeModelParams
    adopted: bool
    score_before: float
    score_after: float
    evaluations: int


def reference_mpp(module: ModuleSpec, params: DiodeModelParams) -> Tuple[float, float]:
    """
    Model MPP (V, I) at STC on the fixed calibration resolution.

    Uses the solver's sweep directly without building curve objects;
    the first sample wins on ties, as in curve analysis.
    """
    best_v, best_i, best_p = 0.0, 0.0, -math.inf
    for voltage, current, _ in sweep_curve(
        module, params, STC_IRRADIANCE, STC_TEMPERATURE, CALIBRATION_RESOLUTION
    ):
        power = voltage * current
        if power > best_p:
            best_v, best_i, best_p = voltage, current, power
    return best_v, best_i


def mpp_distance(module: ModuleSpec, params: DiodeModelParams) -> float:
    """Euclidean distance between model MPP and nameplate (Vmpp, Impp)."""
    vmpp, impp = reference_mpp(module, params)
    return math.hypot(vmpp - module.vmpp_ref, impp - module.impp_ref)


def _clamp(value: float, bounds: Tuple[float, float]) -> float:
    low, high = bounds
    return min(max(value, low), high)


def _coarse_candidates() -> Iterator[DiodeModelParams]:
    for n, rs, rsh in get_coarse_grid():
        yield DiodeModelParams(n=float(n), rs=float(rs), rsh=float(rsh))


def _refined_candidates(center: DiodeModelParams) -> Iterator[DiodeModelParams]:
    n_values = [_clamp(center.n + d, CALIBRATION_BOUNDS.n) for d in FINE_N_OFFSETS]
    rs_values = [_clamp(center.rs * f, CALIBRATION_BOUNDS.rs) for f in FINE_RS_FACTORS]
    rsh_values = [_clamp(center.rsh * f, CALIBRATION_BOUNDS.rsh) for f in FINE_RSH_FACTORS]
    for n, rs, rsh in itertools.product(n_values, rs_values, rsh_values):
        yield DiodeModelParams(n=n, rs=rs, rsh=rsh)


@log_execution_time(logger)
def run_calibration(module: ModuleSpec, params: DiodeModelParams) -> CalibrationResult:
    """
    Fit (n, Rs, Rsh) to the nameplate maximum power point.

    Args:
        module: Module nameplate data (vmpp_ref/impp_ref are the target)
        params: Current parameters; their score seeds the search

    Returns:
        CalibrationResult. New parameters are adopted only when they
        improve the MPP distance by more than 1e-3.
    """
    score_before = mpp_distance(module, params)
    best_params, best_score = params, score_before
    evaluations = 1

    grid_params, grid_score = None, math.inf
    for candidate in _coarse_candidates():
        score = mpp_distance(module, candidate)
        evaluations += 1
        if score < grid_score:
            grid_params, grid_score = candidate, score
        if score < best_score:
            best_params, best_score = candidate, score

    if grid_params is not None:
        for candidate in _refined_candidates(grid_params):
            score = mpp_distance(module, candidate)
            evaluations += 1
            if score < best_score:
                best_params, best_score = candidate, score

    improvement = score_before - best_score
    if improvement > CALIBRATION_MIN_IMPROVEMENT:
        logger.info(
            f"Calibration adopted n={best_params.n:.3f}, Rs={best_params.rs:.4f} Ω, "
            f"Rsh={best_params.rsh:.1f} Ω (MPP distance {score_before:.4f} -> {best_score:.4f})"
        )
        return CalibrationResult(
            params=best_params,
            adopted=True,
            score_before=score_before,
            score_after=best_score,
            evaluations=evaluations,
        )

    logger.debug(f"Calibration kept current parameters (MPP distance {score_before:.4f})")
    return CalibrationResult(
        params=params,
        adopted=False,
        score_before=score_before,
        score_after=score_before,
        evaluations=evaluations,
    )


def calibrate(module: ModuleSpec, params: DiodeModelParams) -> DiodeModelParams:
    """
    Return calibrated parameters, or ``params`` itself when no better fit exists.

    Side-effect free; the caller decides whether to apply the result.
    """
    return run_calibration(module, params).params
