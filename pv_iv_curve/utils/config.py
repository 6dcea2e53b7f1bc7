"""
Configuration management for the PV I-V curve simulator.

Handles loading the simulation configuration from YAML files and
environment variables and validating it with pydantic models.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..data_input.module_data import DiodeModelParams, ModuleSpec, OperatingCondition
from .constants import (
    DEFAULT_RESOLUTION,
    IDEALITY_FACTOR_MAX,
    IDEALITY_FACTOR_MIN,
    RESOLUTION_MAX,
    RESOLUTION_MIN,
    STC_IRRADIANCE,
    STC_TEMPERATURE,
)

# Load environment variables
load_dotenv()

DEFAULT_CONFIG_PATH = "config/simulation.yaml"


class ConfigurationError(ValueError):
    """Exception raised for invalid simulation configuration."""
    pass


class ModuleConfig(BaseModel):
    """
    Module nameplate data as entered from a datasheet.

    Attributes:
        name: Model designation
        voc_ref: Open-circuit voltage at STC in V
        isc_ref: Short-circuit current at STC in A
        vmpp_ref: Voltage at maximum power at STC in V
        impp_ref: Current at maximum power at STC in A
        area: Module area in m²
        alpha_isc_pct: Isc temperature coefficient in %/°C
        beta_voc_pct: Voc temperature coefficient in %/°C
    """
    name: str = "ELGIN ELG590-M72HEP"
    voc_ref: float = Field(52.0, gt=0)
    isc_ref: float = Field(14.31, gt=0)
    vmpp_ref: float = Field(43.55, gt=0)
    impp_ref: float = Field(13.55, gt=0)
    area: float = Field(2.648, gt=0)
    alpha_isc_pct: float = Field(0.046, ge=-1, le=1)
    beta_voc_pct: float = Field(-0.26, ge=-1, le=1)

    @field_validator("alpha_isc_pct")
    @classmethod
    def alpha_non_negative(cls, v):
        """Isc rises with temperature."""
        if v < 0:
            raise ValueError("alpha_isc_pct must not be negative")
        return v

    @field_validator("beta_voc_pct")
    @classmethod
    def beta_non_positive(cls, v):
        """Voc falls with temperature."""
        if v > 0:
            raise ValueError("beta_voc_pct must not be positive")
        return v

    @model_validator(mode="after")
    def mpp_below_limits(self):
        """The maximum power point lies inside (0, Voc) × (0, Isc)."""
        if self.vmpp_ref >= self.voc_ref:
            raise ValueError("vmpp_ref must be less than voc_ref")
        if self.impp_ref >= self.isc_ref:
            raise ValueError("impp_ref must be less than isc_ref")
        return self


class SimulationConfig(BaseModel):
    """
    Configuration recognized by the simulation kernel.

    Attributes:
        irradiance: Irradiance in W/m²
        temperature: Cell temperature in °C
        n: Diode ideality factor
        rs: Series resistance in Ω
        rsh: Shunt resistance in Ω
        cells_series: Number of cells in series
        resolution: Number of voltage steps per curve
        auto_calibrate: Calibrate (n, Rs, Rsh) when near STC
        module: Module nameplate data
    """
    irradiance: float = Field(STC_IRRADIANCE, gt=0)
    temperature: float = Field(STC_TEMPERATURE, ge=-50, le=100)
    n: float = Field(1.3, gt=IDEALITY_FACTOR_MIN, lt=IDEALITY_FACTOR_MAX)
    rs: float = Field(0.2, ge=0)
    rsh: float = Field(1000.0, gt=0)
    cells_series: int = Field(144, ge=1)
    resolution: int = Field(DEFAULT_RESOLUTION, ge=RESOLUTION_MIN, le=RESOLUTION_MAX)
    auto_calibrate: bool = True
    module: ModuleConfig = Field(default_factory=ModuleConfig)

    def to_module_spec(self) -> ModuleSpec:
        """Build the kernel's ModuleSpec."""
        return ModuleSpec.from_datasheet(
            voc_ref=self.module.voc_ref,
            isc_ref=self.module.isc_ref,
            vmpp_ref=self.module.vmpp_ref,
            impp_ref=self.module.impp_ref,
            area=self.module.area,
            cells_series=self.cells_series,
            alpha_isc_pct=self.module.alpha_isc_pct,
            beta_voc_pct=self.module.beta_voc_pct,
            name=self.module.name,
        )

    def to_diode_params(self) -> DiodeModelParams:
        """Build the kernel's DiodeModelParams."""
        return DiodeModelParams(n=self.n, rs=self.rs, rsh=self.rsh)

    def to_condition(self) -> OperatingCondition:
        """Build the kernel's OperatingCondition."""
        return OperatingCondition(irradiance=self.irradiance, temperature=self.temperature)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "SimulationConfig":
        """
        Create configuration from dictionary.

        Raises:
            ConfigurationError: If any value is missing, malformed or out of range
        """
        try:
            return cls.model_validate(config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid simulation configuration: {e}") from e


def load_config(config_path: Optional[str] = None) -> SimulationConfig:
    """
    Load simulation configuration from YAML file and environment variables.

    Args:
        config_path: Optional path to configuration file.
                    Defaults to config/simulation.yaml

    Returns:
        SimulationConfig instance with loaded configuration

    Raises:
        ConfigurationError: If the file cannot be parsed or the values are invalid
    """
    config_dict: Dict[str, Any] = {}

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_file = Path(config_path)
    if config_file.exists():
        try:
            with open(config_file, "r") as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {config_file}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"{config_file} must contain a mapping")

    # Override with environment variables
    env_mappings = {
        "PV_IV_IRRADIANCE": "irradiance",
        "PV_IV_TEMPERATURE": "temperature",
        "PV_IV_RESOLUTION": "resolution",
        "PV_IV_AUTO_CALIBRATE": "auto_calibrate",
    }

    for env_var, config_key in env_mappings.items():
        if env_var in os.environ:
            value = os.environ[env_var]
            if config_key == "auto_calibrate":
                config_dict[config_key] = value.lower() in ("true", "1", "yes")
            else:
                config_dict[config_key] = value

    return SimulationConfig.from_dict(config_dict)
