"""
Irradiance and temperature correction of the module's terminal quantities.

Translates the nameplate short-circuit current and open-circuit voltage
from STC to an arbitrary operating condition:

    Isc' = Isc_ref · (G / G_ref) · (1 + α · (Tc − T_ref))
    Voc' = Voc_ref · (1 + β · (Tc − T_ref)) + n·Vt·Ns · ln(G / G_ref)
"""

import math

from ..data_input.module_data import DiodeModelParams, ModuleSpec, OperatingCondition
from ..utils.constants import (
    BOLTZMANN_CONSTANT,
    ELEMENTARY_CHARGE,
    IRRADIANCE_LOG_FLOOR,
    KELVIN_OFFSET,
    STC_IRRADIANCE,
    STC_TEMPERATURE,
    VOC_FLOOR,
)


def thermal_voltage(temperature: float) -> float:
    """
    Per-cell thermal voltage kT/q.

    Args:
        temperature: Cell temperature (°C)

    Returns:
        Thermal voltage (V), ~25.69 mV at 25 °C
    """
    return BOLTZMANN_CONSTANT * (temperature + KELVIN_OFFSET) / ELEMENTARY_CHARGE


def module_thermal_voltage(
    module: ModuleSpec,
    params: DiodeModelParams,
    temperature: float,
) -> float:
    """Thermal voltage scaled by ideality factor and series cell count."""
    return params.n * thermal_voltage(temperature) * max(module.cells_series, 1)


def adjusted_isc(module: ModuleSpec, irradiance: float, temperature: float) -> float:
    """
    Short-circuit current at the given operating condition.

    Args:
        module: Module nameplate data
        irradiance: Irradiance (W/m²)
        temperature: Cell temperature (°C)

    Returns:
        Corrected short-circuit current (A)
    """
    return (
        module.isc_ref
        * (irradiance / STC_IRRADIANCE)
        * (1 + module.alpha_isc * (temperature - STC_TEMPERATURE))
    )


def adjusted_voc(
    module: ModuleSpec,
    params: DiodeModelParams,
    irradiance: float,
    temperature: float,
) -> float:
    """
    Open-circuit voltage at the given operating condition.

    The irradiance is floored at 1 W/m² before the logarithm and the
    result is floored at 0.1 V, so zero irradiance still yields a finite,
    positive voltage.

    Args:
        module: Module nameplate data
        params: Single-diode parameters (ideality factor enters the log term)
        irradiance: Irradiance (W/m²)
        temperature: Cell temperature (°C)

    Returns:
        Corrected open-circuit voltage (V)
    """
    thermal = module.voc_ref * (1 + module.beta_voc * (temperature - STC_TEMPERATURE))
    nvt = module_thermal_voltage(module, params, temperature)
    log_term = nvt * math.log(max(irradiance, IRRADIANCE_LOG_FLOOR) / STC_IRRADIANCE)
    return max(thermal + log_term, VOC_FLOOR)


def is_near_stc(irradiance: float, temperature: float) -> bool:
    """Check whether a condition lies within ±2 % / ±1 °C of STC."""
    return OperatingCondition(irradiance, temperature).is_near_stc
