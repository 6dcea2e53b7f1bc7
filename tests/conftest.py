"""
Pytest Configuration and Fixtures for the PV I-V curve simulator tests.

This module provides shared fixtures and configuration for all tests.
"""

import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pv_iv_curve.calculations.calibration import run_calibration
from pv_iv_curve.calculations.single_diode import compute_curve
from pv_iv_curve.data_input.module_data import (
    DEFAULT_DIODE_PARAMS,
    ELGIN_ELG590_M72HEP,
    DiodeModelParams,
    ModuleSpec,
    OperatingCondition,
)


# =============================================================================
# MODULE FIXTURES
# =============================================================================

@pytest.fixture
def module() -> ModuleSpec:
    """590 Wp reference module (144 half-cut cells)."""
    return ELGIN_ELG590_M72HEP


@pytest.fixture
def diode_params() -> DiodeModelParams:
    """Uncalibrated starting parameters (n=1.3, Rs=0.2 Ω, Rsh=1000 Ω)."""
    return DEFAULT_DIODE_PARAMS


@pytest.fixture
def stc() -> OperatingCondition:
    """Standard test conditions."""
    return OperatingCondition(irradiance=1000.0, temperature=25.0)


@pytest.fixture
def sample_module_data() -> Dict[str, Any]:
    """Module nameplate data as a dictionary."""
    return {
        "voc_ref": 48.5,
        "isc_ref": 10.5,
        "vmpp_ref": 40.8,
        "impp_ref": 9.8,
        "area": 1.92,
        "cells_series": 72,
        "alpha_isc": 0.0005,
        "beta_voc": -0.0028,
        "name": "TS-400M",
        "manufacturer": "Test Solar",
    }


# =============================================================================
# CURVE FIXTURES
# =============================================================================

@pytest.fixture
def stc_curve(module, diode_params):
    """Curve at STC with the uncalibrated parameters."""
    return compute_curve(module, diode_params, 1000.0, 25.0, resolution=140)


@pytest.fixture(scope="session")
def calibration_result():
    """Calibration of the reference module from the default parameters."""
    return run_calibration(ELGIN_ELG590_M72HEP, DEFAULT_DIODE_PARAMS)


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture
def clean_env(monkeypatch):
    """Remove simulator environment overrides."""
    for var in (
        "PV_IV_IRRADIANCE",
        "PV_IV_TEMPERATURE",
        "PV_IV_RESOLUTION",
        "PV_IV_AUTO_CALIBRATE",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture
def config_file(tmp_path) -> Path:
    """YAML configuration file at 800 W/m², 45 °C."""
    path = tmp_path / "simulation.yaml"
    path.write_text(
        "irradiance: 800\n"
        "temperature: 45\n"
        "n: 1.2\n"
        "rs: 0.1\n"
        "rsh: 2000\n"
        "cells_series: 144\n"
        "resolution: 100\n"
        "auto_calibrate: false\n"
        "module:\n"
        "  name: Test Module\n"
        "  voc_ref: 52.0\n"
        "  isc_ref: 14.31\n"
        "  vmpp_ref: 43.55\n"
        "  impp_ref: 13.55\n"
        "  area: 2.648\n"
        "  alpha_isc_pct: 0.046\n"
        "  beta_voc_pct: -0.26\n"
    )
    return path
