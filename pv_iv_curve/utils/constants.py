"""
Physical Constants and Model Reference Values.

This module contains the physical constants, standard test conditions,
numerical guards and calibration search grids used by the single-diode
PV module model.

Reference:
    IEC 60904-3 - Standard Test Conditions (1000 W/m², 25 °C, AM1.5G)
    CODATA 2018 - Exact values of k and q (SI 2019 redefinition)
"""

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np


# =============================================================================
# Physical Constants
# =============================================================================

# Boltzmann constant (J/K)
BOLTZMANN_CONSTANT: float = 1.380649e-23

# Elementary charge (C)
ELEMENTARY_CHARGE: float = 1.602176634e-19

# Offset between Celsius and Kelvin scales
KELVIN_OFFSET: float = 273.15


# =============================================================================
# Standard Test Conditions
# =============================================================================

@dataclass(frozen=True)
class TestCondition:
    """
    Reference test condition definition.

    Attributes:
        name: Full name of the test condition
        abbreviation: Standard abbreviation
        irradiance: Irradiance level in W/m²
        temperature: Cell temperature in °C
    """
    name: str
    abbreviation: str
    irradiance: float
    temperature: float


STC = TestCondition(
    name="Standard Test Conditions",
    abbreviation="STC",
    irradiance=1000.0,
    temperature=25.0,
)

STC_IRRADIANCE: float = STC.irradiance    # W/m²
STC_TEMPERATURE: float = STC.temperature  # °C

# Window in which an operating condition counts as "near STC"
NEAR_STC_IRRADIANCE_FRACTION: float = 0.02  # ±2 % of 1000 W/m²
NEAR_STC_TEMPERATURE_DELTA: float = 1.0     # ±1 °C


# =============================================================================
# Solver Guards
# =============================================================================

# Newton-Raphson settings
NEWTON_MAX_ITERATIONS: int = 80
NEWTON_STEP_TOLERANCE: float = 1e-8  # A

# Exponent clamp applied before exp() inside the iteration
EXP_ARGUMENT_LIMIT: float = 50.0

# Largest argument math.exp() accepts without overflowing
EXP_OVERFLOW_LIMIT: float = 709.0

# Floors for denominators
NVT_FLOOR: float = 1e-9
RSH_FLOOR: float = 1e-9
RSH_FLOOR_SATURATION: float = 1e-6
DERIVATIVE_FLOOR: float = 1e-12
SATURATION_CURRENT_FLOOR: float = 1e-12  # A

# Iterate bounds
NEGATIVE_CURRENT_SLACK: float = -0.1  # A
CURRENT_CAP_FACTOR: float = 1.2       # × IL

# Open-circuit voltage floor (V)
VOC_FLOOR: float = 0.1

# Irradiance floor before the logarithmic Voc term (W/m²)
IRRADIANCE_LOG_FLOOR: float = 1.0

# Voltage sweep extends past the open-circuit voltage by this factor
VOLTAGE_SWEEP_MARGIN: float = 1.02

# Curve resolution
MIN_RESOLUTION: int = 10
DEFAULT_RESOLUTION: int = 140
RESOLUTION_MIN: int = 50
RESOLUTION_MAX: int = 400

# Minimum denominator for the fill factor
FILL_FACTOR_FLOOR: float = 1e-9


# =============================================================================
# Diagnostic Tolerances
# =============================================================================

ISC_TOLERANCE_ABS: float = 0.5        # A
ISC_TOLERANCE_REL: float = 0.05
OPEN_CIRCUIT_TOLERANCE_ABS: float = 0.3  # A
OPEN_CIRCUIT_TOLERANCE_REL: float = 0.03
MONOTONIC_TOLERANCE: float = 1e-3     # A
NAMEPLATE_MPP_TOLERANCE_REL: float = 0.05


# =============================================================================
# Ideality Factor / Parasitic Resistance Ranges
# =============================================================================

IDEALITY_FACTOR_MIN: float = 1.0
IDEALITY_FACTOR_MAX: float = 2.0


@dataclass(frozen=True)
class ParameterBounds:
    """
    Clamp window applied to refined calibration candidates.

    Attributes:
        n: Ideality factor bounds (inside the open interval (1, 2))
        rs: Series resistance bounds (Ω)
        rsh: Shunt resistance bounds (Ω)
    """
    n: Tuple[float, float]
    rs: Tuple[float, float]
    rsh: Tuple[float, float]


CALIBRATION_BOUNDS = ParameterBounds(
    n=(1.001, 1.999),
    rs=(0.005, 1.0),
    rsh=(50.0, 100000.0),
)


# =============================================================================
# Calibration Search Grids
# =============================================================================

# Stage 1: coarse grid (6 × 7 × 7 = 294 evaluations)
COARSE_N_GRID: Tuple[float, ...] = (1.1, 1.2, 1.3, 1.4, 1.5, 1.6)
COARSE_RS_GRID: Tuple[float, ...] = (0.02, 0.05, 0.1, 0.15, 0.2, 0.3, 0.4)
COARSE_RSH_GRID: Tuple[float, ...] = (200.0, 500.0, 1000.0, 2000.0, 5000.0, 10000.0, 20000.0)

# Stage 2: refinement around the coarse winner (5 × 5 × 5 = 125 evaluations)
FINE_N_OFFSETS: Tuple[float, ...] = (-0.05, -0.02, 0.0, 0.02, 0.05)
FINE_RS_FACTORS: Tuple[float, ...] = (0.7, 0.85, 1.0, 1.15, 1.3)
FINE_RSH_FACTORS: Tuple[float, ...] = (0.5, 0.75, 1.0, 1.3, 1.6)

# Score improvement required before calibrated parameters are adopted
CALIBRATION_MIN_IMPROVEMENT: float = 1e-3

# Calibration always scores at STC with a fixed resolution
CALIBRATION_RESOLUTION: int = 140


# =============================================================================
# Comparative Curve Families
# =============================================================================

SWEEP_IRRADIANCES: Tuple[float, ...] = (1000.0, 800.0, 600.0, 400.0, 200.0)  # W/m² at 25 °C
SWEEP_TEMPERATURES: Tuple[float, ...] = (75.0, 65.0, 55.0, 45.0, 35.0, 25.0)  # °C at 1000 W/m²


# =============================================================================
# Display Units
# =============================================================================

UNITS: Dict[str, str] = {
    "irradiance": "W/m²",
    "temperature": "°C",
    "power": "W",
    "voltage": "V",
    "current": "A",
    "efficiency": "%",
    "fill_factor": "%",
    "resistance": "Ω",
}


# =============================================================================
# Helper Functions
# =============================================================================

def get_coarse_grid() -> np.ndarray:
    """
    Return the Stage-1 calibration grid as an array of (n, rs, rsh) rows.

    Returns:
        np.ndarray: Array of shape (294, 3)
    """
    mesh = np.meshgrid(COARSE_N_GRID, COARSE_RS_GRID, COARSE_RSH_GRID, indexing="ij")
    return np.stack([axis.ravel() for axis in mesh], axis=1)
