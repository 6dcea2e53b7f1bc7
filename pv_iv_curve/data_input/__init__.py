"""Data input modules for the PV I-V curve simulator."""

from .module_data import (
    DEFAULT_DIODE_PARAMS,
    ELGIN_ELG590_M72HEP,
    STC_CONDITION,
    DiodeModelParams,
    ModuleSpec,
    OperatingCondition,
)
from .validation import DataValidator, ValidationResult

__all__ = [
    "DEFAULT_DIODE_PARAMS",
    "ELGIN_ELG590_M72HEP",
    "STC_CONDITION",
    "DiodeModelParams",
    "ModuleSpec",
    "OperatingCondition",
    "DataValidator",
    "ValidationResult",
]
