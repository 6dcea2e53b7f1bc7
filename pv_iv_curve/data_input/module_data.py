"""
PV module data model.

Provides the nameplate specification, the tunable single-diode parameters
and the operating condition that drive the I-V curve calculations.
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from ..utils.constants import (
    NEAR_STC_IRRADIANCE_FRACTION,
    NEAR_STC_TEMPERATURE_DELTA,
    STC_IRRADIANCE,
    STC_TEMPERATURE,
)


@dataclass(frozen=True)
class ModuleSpec:
    """
    PV module nameplate data measured at STC (1000 W/m², 25 °C).

    Attributes:
        voc_ref: Open-circuit voltage (V)
        isc_ref: Short-circuit current (A)
        vmpp_ref: Voltage at maximum power (V)
        impp_ref: Current at maximum power (A)
        area: Module area (m²)
        cells_series: Number of cells connected in series
        alpha_isc: Isc temperature coefficient (fraction/°C, positive)
        beta_voc: Voc temperature coefficient (fraction/°C, negative)
        name: Optional model designation
    """

    voc_ref: float
    isc_ref: float
    vmpp_ref: float
    impp_ref: float
    area: float
    cells_series: int
    alpha_isc: float
    beta_voc: float
    name: str = ""

    @property
    def pmax_ref(self) -> float:
        """Nameplate maximum power (W)."""
        return self.vmpp_ref * self.impp_ref

    @classmethod
    def from_datasheet(
        cls,
        voc_ref: float,
        isc_ref: float,
        vmpp_ref: float,
        impp_ref: float,
        area: float,
        cells_series: int,
        alpha_isc_pct: float,
        beta_voc_pct: float,
        name: str = "",
    ) -> "ModuleSpec":
        """
        Create a ModuleSpec from datasheet values.

        Datasheets quote temperature coefficients in %/°C; they are
        stored as fractions per °C.
        """
        return cls(
            voc_ref=voc_ref,
            isc_ref=isc_ref,
            vmpp_ref=vmpp_ref,
            impp_ref=impp_ref,
            area=area,
            cells_series=int(cells_series),
            alpha_isc=alpha_isc_pct / 100.0,
            beta_voc=beta_voc_pct / 100.0,
            name=name,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModuleSpec":
        """Create ModuleSpec from dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in fields(cls)}
        filtered_data = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered_data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class DiodeModelParams:
    """
    Tunable single-diode model parameters.

    Attributes:
        n: Diode ideality factor, physically within (1, 2)
        rs: Series resistance (Ω)
        rsh: Shunt resistance (Ω)
    """

    n: float
    rs: float
    rsh: float

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class OperatingCondition:
    """
    Operating point of the module.

    Attributes:
        irradiance: Plane-of-array irradiance (W/m²)
        temperature: Cell temperature (°C)
    """

    irradiance: float
    temperature: float

    @property
    def is_near_stc(self) -> bool:
        """True within ±2 % of 1000 W/m² and ±1 °C of 25 °C."""
        return (
            abs(self.irradiance - STC_IRRADIANCE) <= NEAR_STC_IRRADIANCE_FRACTION * STC_IRRADIANCE
            and abs(self.temperature - STC_TEMPERATURE) <= NEAR_STC_TEMPERATURE_DELTA
        )


STC_CONDITION = OperatingCondition(irradiance=STC_IRRADIANCE, temperature=STC_TEMPERATURE)

# 590 Wp mono PERC half-cut module
ELGIN_ELG590_M72HEP = ModuleSpec.from_datasheet(
    voc_ref=52.0,
    isc_ref=14.31,
    vmpp_ref=43.55,
    impp_ref=13.55,
    area=2.648,
    cells_series=144,
    alpha_isc_pct=0.046,
    beta_voc_pct=-0.26,
    name="ELGIN ELG590-M72HEP",
)

DEFAULT_DIODE_PARAMS = DiodeModelParams(n=1.3, rs=0.2, rsh=1000.0)
