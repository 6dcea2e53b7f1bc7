"""
Single-Diode Model Solver.

Solves the implicit module equation

    I = IL − Io · (exp((V + I·Rs) / (n·Vt·Ns)) − 1) − (V + I·Rs) / Rsh

for the terminal current at each voltage of a linear sweep from 0 V to just
past the open-circuit voltage, producing the I-V and P-V curves.

The solver never raises on degenerate inputs: every ratio is floored and
every exponent clamped, so the result is always a numeric (possibly
degenerate) curve.
"""

import functools
import logging
import math
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..data_input.module_data import DiodeModelParams, ModuleSpec, OperatingCondition
from ..utils.constants import (
    CURRENT_CAP_FACTOR,
    DEFAULT_RESOLUTION,
    DERIVATIVE_FLOOR,
    EXP_ARGUMENT_LIMIT,
    EXP_OVERFLOW_LIMIT,
    MIN_RESOLUTION,
    NEGATIVE_CURRENT_SLACK,
    NEWTON_MAX_ITERATIONS,
    NEWTON_STEP_TOLERANCE,
    NVT_FLOOR,
    RSH_FLOOR,
    RSH_FLOOR_SATURATION,
    SATURATION_CURRENT_FLOOR,
    STC_TEMPERATURE,
    STC_IRRADIANCE,
    SWEEP_IRRADIANCES,
    SWEEP_TEMPERATURES,
    VOLTAGE_SWEEP_MARGIN,
)
from .conditions import adjusted_isc, adjusted_voc, module_thermal_voltage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurvePoint:
    """
    One sample of the I-V curve.

    Attributes:
        voltage: Terminal voltage (V)
        current: Terminal current (A), clipped to [0, 1.2·IL]
        power: voltage · current (W)
        converged: False when Newton iteration neither met the step
            tolerance nor settled on a clamp bound
    """
    voltage: float
    current: float
    power: float
    converged: bool = True


@dataclass
class Curve:
    """
    Sampled I-V / P-V curve with the scalars it was derived from.

    Attributes:
        points: Curve samples ordered by increasing voltage
        photo_current: Light-generated current IL (A)
        voc: Condition-adjusted open-circuit voltage (V)
        saturation_current: Diode saturation current Io (A)
        condition: Operating condition of the curve
    """
    points: List[CurvePoint]
    photo_current: float
    voc: float
    saturation_current: float
    condition: OperatingCondition

    @property
    def voltages(self) -> np.ndarray:
        return np.array([p.voltage for p in self.points], dtype=np.float64)

    @property
    def currents(self) -> np.ndarray:
        return np.array([p.current for p in self.points], dtype=np.float64)

    @property
    def powers(self) -> np.ndarray:
        return np.array([p.power for p in self.points], dtype=np.float64)

    @property
    def converged(self) -> bool:
        """True if every sample converged."""
        return all(p.converged for p in self.points)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert the samples to a DataFrame with voltage, current and power columns."""
        return pd.DataFrame(
            {
                "voltage": self.voltages,
                "current": self.currents,
                "power": self.powers,
            }
        )


def saturation_current(
    photo_current: float,
    voc: float,
    nvt: float,
    rsh: float,
) -> float:
    """
    Diode saturation current that places the open-circuit point at Voc.

    Io = (IL − Voc/Rsh) / (exp(Voc/nvt) − 1), floored at 1e-12 A. A
    non-positive denominator gives 0 before the floor; an exponent that
    would overflow gives an infinite denominator (hence the floor).

    Args:
        photo_current: Light-generated current IL (A)
        voc: Open-circuit voltage (V)
        nvt: Module thermal voltage n·Vt·Ns (V)
        rsh: Shunt resistance (Ω)

    Returns:
        Saturation current (A)
    """
    exponent = max(voc, 0.0) / max(nvt, NVT_FLOOR)
    if exponent > EXP_OVERFLOW_LIMIT:
        denom = math.inf
    else:
        denom = math.exp(exponent) - 1
    numer = photo_current - voc / max(rsh, RSH_FLOOR_SATURATION)
    io = numer / denom if denom > 0 else 0.0
    return max(io, SATURATION_CURRENT_FLOOR)


def solve_current(
    voltage: float,
    current_guess: float,
    photo_current: float,
    saturation_current: float,
    rs: float,
    rsh: float,
    nvt: float,
    max_iterations: int = NEWTON_MAX_ITERATIONS,
    tolerance: float = NEWTON_STEP_TOLERANCE,
) -> Tuple[float, bool]:
    """
    Solve the single-diode equation for the current at one voltage.

    Newton-Raphson on F(I) = I − IL + Io·(exp((V+I·Rs)/nvt) − 1) + (V+I·Rs)/Rsh.
    After every step the iterate is zeroed below −0.1 A and capped at
    1.2·IL. An iterate pushed onto a clamp bound a second time has
    settled there (the root lies outside the window) and stops the loop.

    Args:
        voltage: Terminal voltage (V)
        current_guess: Starting current, usually the solution at the previous voltage (A)
        photo_current: Light-generated current IL (A)
        saturation_current: Diode saturation current Io (A)
        rs: Series resistance (Ω)
        rsh: Shunt resistance (Ω)
        nvt: Module thermal voltage (V)
        max_iterations: Iteration cap
        tolerance: Step magnitude below which the iteration stops (A)

    Returns:
        Tuple of (current clipped at 0, converged flag)
    """
    nvt = max(nvt, NVT_FLOOR)
    rsh = max(rsh, RSH_FLOOR)
    cap = max(CURRENT_CAP_FACTOR * photo_current, 0.0)

    current = min(max(current_guess, 0.0), cap)
    converged = False
    bound_hits = 0

    for _ in range(max_iterations):
        diode_voltage = voltage + current * rs
        arg = min(max(diode_voltage / nvt, -EXP_ARGUMENT_LIMIT), EXP_ARGUMENT_LIMIT)
        exp_arg = math.exp(arg)

        f = current - photo_current + saturation_current * (exp_arg - 1) + diode_voltage / rsh
        df = 1 + saturation_current * exp_arg * (rs / nvt) + rs / rsh
        step = f / max(df, DERIVATIVE_FLOOR)
        current -= step

        if not math.isfinite(current):
            current = 0.0
            break

        if current < NEGATIVE_CURRENT_SLACK:
            current = 0.0
            bound_hits += 1
        elif current > cap:
            current = cap
            bound_hits += 1

        if abs(step) < tolerance or bound_hits >= 2:
            converged = True
            break

    return max(current, 0.0), converged


def _operating_point(
    module: ModuleSpec,
    params: DiodeModelParams,
    irradiance: float,
    temperature: float,
) -> Tuple[float, float, float, float]:
    """Return (nvt, IL, Voc', Io) for a condition."""
    nvt = module_thermal_voltage(module, params, temperature)
    photo_current = adjusted_isc(module, irradiance, temperature)
    voc = adjusted_voc(module, params, irradiance, temperature)
    io = saturation_current(photo_current, voc, nvt, params.rsh)
    return nvt, photo_current, voc, io


def sweep_curve(
    module: ModuleSpec,
    params: DiodeModelParams,
    irradiance: float,
    temperature: float,
    resolution: int = DEFAULT_RESOLUTION,
) -> Iterator[Tuple[float, float, bool]]:
    """
    Yield (voltage, current, converged) along the voltage sweep.

    Lightweight path shared by compute_curve and the calibration scorer.
    Each voltage starts Newton from the current solved at the previous
    (lower) voltage, beginning from IL at 0 V.
    """
    nvt, photo_current, voc, io = _operating_point(module, params, irradiance, temperature)
    steps = max(int(resolution), MIN_RESOLUTION)
    v_max = max(voc, module.voc_ref) * VOLTAGE_SWEEP_MARGIN
    dv = v_max / steps

    current = photo_current
    for i in range(steps + 1):
        voltage = i * dv
        current, converged = solve_current(
            voltage, current, photo_current, io, params.rs, params.rsh, nvt
        )
        yield voltage, current, converged


def compute_curve(
    module: ModuleSpec,
    params: DiodeModelParams,
    irradiance: float,
    temperature: float,
    resolution: int = DEFAULT_RESOLUTION,
) -> Curve:
    """
    Compute the I-V / P-V curve at an operating condition.

    Args:
        module: Module nameplate data
        params: Single-diode parameters
        irradiance: Irradiance (W/m²)
        temperature: Cell temperature (°C)
        resolution: Number of voltage steps; the curve has resolution+1 points
            (resolutions below 10 are raised to 10)

    Returns:
        Curve with samples, IL, Voc', Io and the condition
    """
    _, photo_current, voc, io = _operating_point(module, params, irradiance, temperature)

    points = [
        CurvePoint(voltage=v, current=i, power=v * i, converged=ok)
        for v, i, ok in sweep_curve(module, params, irradiance, temperature, resolution)
    ]

    unconverged = sum(1 for p in points if not p.converged)
    if unconverged:
        logger.debug(
            f"{unconverged}/{len(points)} points did not converge at "
            f"G={irradiance} W/m², T={temperature} °C"
        )

    return Curve(
        points=points,
        photo_current=photo_current,
        voc=voc,
        saturation_current=io,
        condition=OperatingCondition(irradiance=irradiance, temperature=temperature),
    )


def _curve_at_condition(
    module: ModuleSpec,
    params: DiodeModelParams,
    resolution: int,
    condition: OperatingCondition,
) -> Curve:
    return compute_curve(module, params, condition.irradiance, condition.temperature, resolution)


def compute_curve_family(
    module: ModuleSpec,
    params: DiodeModelParams,
    conditions: Sequence[OperatingCondition],
    resolution: int = DEFAULT_RESOLUTION,
    max_workers: Optional[int] = None,
) -> List[Curve]:
    """
    Compute independent curves for several conditions in parallel.

    The Newton loop is pure Python, so curves are solved in worker
    processes rather than threads. A single condition or ``max_workers=1``
    runs in the calling process.

    Args:
        module: Module nameplate data
        params: Single-diode parameters
        conditions: Operating conditions to evaluate
        resolution: Number of voltage steps per curve
        max_workers: Process pool size (None for the executor default)

    Returns:
        Curves in the order of ``conditions``
    """
    worker = functools.partial(_curve_at_condition, module, params, resolution)
    if len(conditions) <= 1 or max_workers == 1:
        return [worker(c) for c in conditions]

    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(worker, conditions))


def irradiance_sweep(
    module: ModuleSpec,
    params: DiodeModelParams,
    levels: Sequence[float] = SWEEP_IRRADIANCES,
    temperature: float = STC_TEMPERATURE,
    resolution: int = DEFAULT_RESOLUTION,
) -> Dict[float, Curve]:
    """I-V curves at several irradiance levels and a fixed temperature."""
    conditions = [OperatingCondition(irradiance=g, temperature=temperature) for g in levels]
    curves = compute_curve_family(module, params, conditions, resolution)
    return dict(zip(levels, curves))


def temperature_sweep(
    module: ModuleSpec,
    params: DiodeModelParams,
    levels: Sequence[float] = SWEEP_TEMPERATURES,
    irradiance: float = STC_IRRADIANCE,
    resolution: int = DEFAULT_RESOLUTION,
) -> Dict[float, Curve]:
    """I-V curves at several cell temperatures and a fixed irradiance."""
    conditions = [OperatingCondition(irradiance=irradiance, temperature=t) for t in levels]
    curves = compute_curve_family(module, params, conditions, resolution)
    return dict(zip(levels, curves))


def curves_to_dataframe(curves: Dict[float, Curve]) -> pd.DataFrame:
    """
    Stack a curve family into one long-format DataFrame.

    Args:
        curves: Mapping of sweep level to curve

    Returns:
        DataFrame with columns label, irradiance, temperature, voltage, current, power
    """
    frames = []
    for label, curve in curves.items():
        df = curve.to_dataframe()
        df.insert(0, "temperature", curve.condition.temperature)
        df.insert(0, "irradiance", curve.condition.irradiance)
        df.insert(0, "label", label)
        frames.append(df)
    if not frames:
        return pd.DataFrame(
            columns=["label", "irradiance", "temperature", "voltage", "current", "power"]
        )
    return pd.concat(frames, ignore_index=True)
