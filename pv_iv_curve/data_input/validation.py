"""
Plausibility checks for module and diode-model inputs.

The numerical kernel never rejects inputs; these checks report values that
are physically implausible so that callers can surface them.
"""

from dataclasses import dataclass, field
from typing import List

from ..utils.constants import IDEALITY_FACTOR_MAX, IDEALITY_FACTOR_MIN
from .module_data import DiodeModelParams, ModuleSpec


@dataclass
class ValidationResult:
    """Result of a validation check."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        """Check if there are any warnings."""
        return len(self.warnings) > 0

    def __bool__(self) -> bool:
        """Return True if valid."""
        return self.is_valid


class DataValidator:
    """
    Validator for module nameplate data and single-diode parameters.
    """

    # Typical ranges for commercial crystalline modules
    VALIDATION_RANGES = {
        "voc_ref": (5.0, 120.0),       # V
        "isc_ref": (0.5, 30.0),        # A
        "vmpp_ref": (4.0, 100.0),      # V
        "impp_ref": (0.5, 25.0),       # A
        "area": (0.1, 5.0),            # m²
        "alpha_isc": (0.0, 0.002),     # 1/°C
        "beta_voc": (-0.01, 0.0),      # 1/°C
    }

    def validate_module_spec(
        self,
        spec: ModuleSpec,
        strict: bool = False,
    ) -> ValidationResult:
        """
        Validate PV module nameplate data.

        Args:
            spec: Module specification
            strict: If True, treat warnings as errors

        Returns:
            ValidationResult
        """
        errors = []
        warnings = []

        for name in ("voc_ref", "isc_ref", "vmpp_ref", "impp_ref", "area"):
            if getattr(spec, name) <= 0:
                errors.append(f"{name} must be positive")

        if spec.cells_series < 1:
            errors.append("cells_series must be at least 1")

        for name, (min_val, max_val) in self.VALIDATION_RANGES.items():
            value = getattr(spec, name)
            if value < min_val or value > max_val:
                warnings.append(
                    f"{name} ({value}) is outside typical range [{min_val}, {max_val}]"
                )

        if spec.vmpp_ref >= spec.voc_ref:
            errors.append("Vmpp must be less than Voc")

        if spec.impp_ref >= spec.isc_ref:
            errors.append("Impp must be less than Isc")

        # Efficiency check
        if spec.area > 0:
            efficiency = spec.pmax_ref / (spec.area * 1000.0) * 100
            if efficiency < 10 or efficiency > 25:
                warnings.append(f"Module efficiency ({efficiency:.1f}%) unusual")

        is_valid = len(errors) == 0 and (not strict or len(warnings) == 0)
        return ValidationResult(is_valid=is_valid, errors=errors, warnings=warnings)

    def validate_diode_params(self, params: DiodeModelParams) -> ValidationResult:
        """
        Validate single-diode parameters.

        Args:
            params: Ideality factor, series and shunt resistance

        Returns:
            ValidationResult
        """
        errors = []
        warnings = []

        if not IDEALITY_FACTOR_MIN < params.n < IDEALITY_FACTOR_MAX:
            warnings.append(
                f"Ideality factor {params.n} outside physical range "
                f"({IDEALITY_FACTOR_MIN}, {IDEALITY_FACTOR_MAX})"
            )
        if params.rs < 0:
            errors.append("Series resistance must not be negative")
        if params.rsh <= 0:
            errors.append("Shunt resistance must be positive")

        return ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)
