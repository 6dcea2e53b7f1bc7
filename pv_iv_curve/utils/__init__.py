"""
Utilities module for the PV I-V curve simulator.

Modules:
    constants: Physical constants, STC, solver guards and calibration grids
    config: YAML/environment configuration with pydantic validation
    logging_config: Logging setup and helpers
"""

from .constants import (
    BOLTZMANN_CONSTANT,
    ELEMENTARY_CHARGE,
    STC,
    STC_IRRADIANCE,
    STC_TEMPERATURE,
)
from .logging_config import setup_logging

__all__ = [
    "BOLTZMANN_CONSTANT",
    "ELEMENTARY_CHARGE",
    "STC",
    "STC_IRRADIANCE",
    "STC_TEMPERATURE",
    "setup_logging",
]
