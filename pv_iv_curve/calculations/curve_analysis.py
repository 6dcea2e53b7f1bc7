"""
I-V curve analysis.

Reduces a computed curve to its maximum power point, fill factor and
conversion efficiency, and runs advisory consistency checks on it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np

from ..data_input.module_data import ModuleSpec
from ..utils.constants import (
    FILL_FACTOR_FLOOR,
    ISC_TOLERANCE_ABS,
    ISC_TOLERANCE_REL,
    MONOTONIC_TOLERANCE,
    NAMEPLATE_MPP_TOLERANCE_REL,
    OPEN_CIRCUIT_TOLERANCE_ABS,
    OPEN_CIRCUIT_TOLERANCE_REL,
)
from .single_diode import Curve, CurvePoint


@dataclass(frozen=True)
class Diagnostic:
    """
    Result of one sanity check on a curve.

    Attributes:
        name: Check identifier
        passed: Whether the check passed
        message: Human-readable explanation
    """
    name: str
    passed: bool
    message: str


@dataclass
class CurveAnalysis:
    """
    Scalar indicators derived from a curve.

    Attributes:
        mpp: Maximum power point
        isc: Condition-adjusted short-circuit current (A)
        voc: Condition-adjusted open-circuit voltage (V)
        fill_factor: Pmpp / (Voc · Isc)
        efficiency: Pmpp / (G · area)
        diagnostics: Advisory check results
    """
    mpp: CurvePoint
    isc: float
    voc: float
    fill_factor: float
    efficiency: float
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True if every diagnostic passed."""
        return all(d.passed for d in self.diagnostics)

    def failed_diagnostics(self) -> List[Diagnostic]:
        """Return the diagnostics that did not pass."""
        return [d for d in self.diagnostics if not d.passed]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "vmpp": self.mpp.voltage,
            "impp": self.mpp.current,
            "pmpp": self.mpp.power,
            "isc": self.isc,
            "voc": self.voc,
            "fill_factor": self.fill_factor,
            "efficiency": self.efficiency,
            "diagnostics": {d.name: d.passed for d in self.diagnostics},
        }


def find_mpp(curve: Curve) -> CurvePoint:
    """
    Locate the maximum power point.

    The first sample wins on ties; an empty curve yields a zero point.
    """
    if not curve.points:
        return CurvePoint(voltage=0.0, current=0.0, power=0.0)
    return curve.points[int(np.argmax(curve.powers))]


def _check_short_circuit(curve: Curve, isc: float) -> Diagnostic:
    current = curve.points[0].current
    tolerance = max(ISC_TOLERANCE_ABS, ISC_TOLERANCE_REL * isc)
    deviation = abs(current - isc)
    return Diagnostic(
        name="short_circuit_current",
        passed=deviation <= tolerance,
        message=f"I(0 V) = {current:.3f} A vs Isc = {isc:.3f} A (tolerance {tolerance:.3f} A)",
    )


def _check_open_circuit(curve: Curve, isc: float) -> Diagnostic:
    last = curve.points[-1]
    tolerance = max(OPEN_CIRCUIT_TOLERANCE_ABS, OPEN_CIRCUIT_TOLERANCE_REL * isc)
    return Diagnostic(
        name="open_circuit_current",
        passed=abs(last.current) <= tolerance,
        message=(
            f"I({last.voltage:.2f} V) = {last.current:.3f} A at the end of the sweep "
            f"(tolerance {tolerance:.3f} A)"
        ),
    )


def _check_monotonic(curve: Curve) -> Diagnostic:
    rises = np.diff(curve.currents)
    worst = float(rises.max()) if rises.size else 0.0
    return Diagnostic(
        name="monotonic_current",
        passed=worst <= MONOTONIC_TOLERANCE,
        message=f"Largest current increase between samples: {worst:.2e} A",
    )


def _check_mpp_bounds(mpp: CurvePoint, isc: float, voc: float) -> Diagnostic:
    inside = 0 < mpp.voltage < voc and 0 < mpp.current < isc
    return Diagnostic(
        name="mpp_inside_bounds",
        passed=inside,
        message=(
            f"MPP ({mpp.voltage:.2f} V, {mpp.current:.3f} A) "
            f"{'inside' if inside else 'outside'} (0, {voc:.2f}) × (0, {isc:.3f})"
        ),
    )


def _check_nameplate(name: str, actual: float, reference: float, unit: str) -> Diagnostic:
    deviation = abs(actual - reference) / reference if reference else float("inf")
    return Diagnostic(
        name=name,
        passed=deviation <= NAMEPLATE_MPP_TOLERANCE_REL,
        message=(
            f"{actual:.3f} {unit} vs nameplate {reference:.3f} {unit} "
            f"({deviation * 100:.1f}% deviation)"
        ),
    )


def _check_convergence(curve: Curve) -> Diagnostic:
    unconverged = sum(1 for p in curve.points if not p.converged)
    return Diagnostic(
        name="solver_convergence",
        passed=unconverged == 0,
        message=f"{unconverged} of {len(curve.points)} samples did not converge",
    )


def analyze(curve: Curve, module: ModuleSpec) -> CurveAnalysis:
    """
    Derive MPP, fill factor, efficiency and diagnostics from a curve.

    Diagnostics are advisory: a failed check is reported, never raised.

    Args:
        curve: Curve produced by compute_curve
        module: Module nameplate data (area and reference MPP)

    Returns:
        CurveAnalysis
    """
    isc = curve.photo_current
    voc = curve.voc
    irradiance = curve.condition.irradiance

    mpp = find_mpp(curve)
    fill_factor = mpp.power / max(voc * isc, FILL_FACTOR_FLOOR)
    incident = irradiance * module.area
    efficiency = mpp.power / incident if incident > 0 else 0.0

    diagnostics: List[Diagnostic] = []
    if curve.points:
        diagnostics.extend([
            _check_short_circuit(curve, isc),
            _check_open_circuit(curve, isc),
            _check_monotonic(curve),
            _check_mpp_bounds(mpp, isc, voc),
        ])
        if curve.condition.is_near_stc:
            diagnostics.append(_check_nameplate("stc_vmpp", mpp.voltage, module.vmpp_ref, "V"))
            diagnostics.append(_check_nameplate("stc_impp", mpp.current, module.impp_ref, "A"))
        diagnostics.append(_check_convergence(curve))

    return CurveAnalysis(
        mpp=mpp,
        isc=isc,
        voc=voc,
        fill_factor=fill_factor,
        efficiency=efficiency,
        diagnostics=diagnostics,
    )
