"""
PV I-V Curve Simulator Test Suite

Tests for:
- Irradiance/temperature correction
- Single-diode curve solver
- Curve analysis and diagnostics
- Parameter calibration
- Configuration, validation and the command-line script
"""
