"""
Single-Diode Solver Tests.

Tests cover:
- Saturation current and its guards
- Newton iteration for one voltage
- Curve sampling, bounds and determinism
- Curve families and DataFrame output
"""

import math
import pickle
from concurrent.futures import ProcessPoolExecutor

import numpy as np
import pandas as pd
import pytest

from pv_iv_curve.calculations import single_diode
from pv_iv_curve.calculations.conditions import adjusted_voc, module_thermal_voltage
from pv_iv_curve.calculations.single_diode import (
    Curve,
    compute_curve,
    compute_curve_family,
    curves_to_dataframe,
    irradiance_sweep,
    saturation_current,
    solve_current,
    sweep_curve,
    temperature_sweep,
)
from pv_iv_curve.data_input.module_data import DiodeModelParams, OperatingCondition


class TestSaturationCurrent:
    """Test diode saturation current."""

    def test_places_open_circuit_at_voc(self):
        """With Io from the formula, F(0) vanishes at V = Voc."""
        il, voc, nvt, rsh = 14.31, 52.0, 4.81, 1000.0
        io = saturation_current(il, voc, nvt, rsh)
        residual = -il + io * (math.exp(voc / nvt) - 1) + voc / rsh
        assert residual == pytest.approx(0.0, abs=1e-9)

    def test_zero_denominator_uses_floor(self):
        """Voc = 0 gives exp(0) − 1 = 0, so Io falls back to the floor."""
        assert saturation_current(14.31, 0.0, 4.81, 1000.0) == 1e-12

    def test_overflowing_exponent_uses_floor(self):
        """A vanishing nvt must not raise OverflowError."""
        assert saturation_current(14.31, 52.0, 0.0, 1000.0) == 1e-12

    def test_negative_numerator_uses_floor(self):
        """A tiny shunt resistance makes Voc/Rsh exceed IL."""
        assert saturation_current(1.0, 52.0, 4.81, 0.01) == 1e-12


class TestSolveCurrent:
    """Test Newton iteration for a single voltage."""

    def test_short_circuit_current(self):
        """At 0 V nearly all of IL reaches the terminals."""
        current, converged = solve_current(0.0, 14.31, 14.31, 2.9e-4, 0.2, 1000.0, 4.81)
        assert converged
        assert current == pytest.approx(14.31, abs=0.01)

    def test_solution_satisfies_equation(self):
        il, io, rs, rsh, nvt, v = 14.31, 2.9e-4, 0.2, 1000.0, 4.81, 35.0
        current, converged = solve_current(v, il, il, io, rs, rsh, nvt)
        assert converged
        vd = v + current * rs
        residual = current - il + io * (math.exp(vd / nvt) - 1) + vd / rsh
        assert residual == pytest.approx(0.0, abs=1e-6)

    def test_beyond_open_circuit_settles_at_zero(self):
        """A negative root is clipped to 0 A and counts as settled."""
        current, converged = solve_current(60.0, 0.5, 14.31, 2.9e-4, 0.2, 1000.0, 4.81)
        assert current == 0.0
        assert converged

    def test_second_clamp_hit_stops_iteration(self):
        """Two clamp hits settle the point before the step tolerance is met."""
        current, converged = solve_current(
            60.0, 0.5, 14.31, 2.9e-4, 0.2, 1000.0, 4.81, max_iterations=2
        )
        assert current == 0.0
        assert converged

    def test_iteration_cap_without_settling(self):
        current, converged = solve_current(
            35.0, 14.31, 14.31, 2.9e-4, 0.2, 1000.0, 4.81, max_iterations=1
        )
        assert not converged
        assert 0.0 <= current <= 1.2 * 14.31

    def test_current_never_exceeds_cap(self):
        current, _ = solve_current(0.0, 100.0, 5.0, 1e-12, 0.0, 1e9, 4.81)
        assert 0.0 <= current <= 1.2 * 5.0

    def test_degenerate_thermal_voltage_does_not_raise(self):
        current, _ = solve_current(10.0, 5.0, 5.0, 1e-12, 0.2, 1000.0, 0.0)
        assert math.isfinite(current)
        assert current >= 0.0


class TestComputeCurve:
    """Test curve generation."""

    def test_point_count(self, module, diode_params):
        curve = compute_curve(module, diode_params, 1000.0, 25.0, resolution=140)
        assert len(curve.points) == 141

    def test_low_resolution_is_floored(self, module, diode_params):
        curve = compute_curve(module, diode_params, 1000.0, 25.0, resolution=3)
        assert len(curve.points) == 11

    def test_voltage_sweep(self, stc_curve, module):
        """V runs from 0 to 1.02 · max(Voc', Voc_ref) in equal steps."""
        voltages = stc_curve.voltages
        assert voltages[0] == 0.0
        assert voltages[-1] == pytest.approx(max(stc_curve.voc, module.voc_ref) * 1.02)
        assert np.allclose(np.diff(voltages), voltages[1])

    def test_power_is_voltage_times_current(self, stc_curve):
        for point in stc_curve.points:
            assert point.power == point.voltage * point.current

    def test_current_bounds(self, stc_curve):
        currents = stc_curve.currents
        assert currents.min() >= 0.0
        assert currents.max() <= 1.2 * stc_curve.photo_current

    def test_scalars(self, stc_curve, module, diode_params):
        assert stc_curve.photo_current == pytest.approx(module.isc_ref)
        assert stc_curve.voc == pytest.approx(adjusted_voc(module, diode_params, 1000.0, 25.0))
        assert stc_curve.saturation_current > 0
        assert stc_curve.condition == OperatingCondition(1000.0, 25.0)

    def test_short_and_open_circuit(self, stc_curve, module):
        """I(0) ≈ Isc and I(Vmax) ≈ 0 at STC."""
        assert abs(stc_curve.points[0].current - module.isc_ref) <= 0.5
        assert stc_curve.points[-1].current <= 0.3

    @pytest.mark.parametrize(
        "irradiance,temperature",
        [(1000.0, 25.0), (800.0, 45.0), (500.0, 25.0), (200.0, 25.0), (1000.0, 75.0), (400.0, 0.0)],
    )
    def test_monotonic_decrease(self, module, diode_params, irradiance, temperature):
        curve = compute_curve(module, diode_params, irradiance, temperature)
        assert np.all(np.diff(curve.currents) <= 1e-3)

    def test_converged_at_stc(self, stc_curve):
        assert stc_curve.converged

    def test_deterministic(self, module, diode_params):
        """Identical inputs give bit-identical samples."""
        first = compute_curve(module, diode_params, 730.0, 41.5)
        second = compute_curve(module, diode_params, 730.0, 41.5)
        assert first.points == second.points

    def test_zero_irradiance(self, module, diode_params):
        """No light gives a flat zero-current curve rather than an error."""
        curve = compute_curve(module, diode_params, 0.0, 25.0)
        assert curve.photo_current == 0.0
        assert np.all(curve.currents == 0.0)

    def test_degenerate_parameters_return_numeric_curve(self, module):
        params = DiodeModelParams(n=1e-12, rs=0.0, rsh=0.0)
        curve = compute_curve(module, params, 1000.0, 25.0, resolution=50)
        assert len(curve.points) == 51
        assert np.all(np.isfinite(curve.currents))

    def test_sweep_matches_curve(self, module, diode_params, stc_curve):
        samples = list(sweep_curve(module, diode_params, 1000.0, 25.0, 140))
        assert [(v, i) for v, i, _ in samples] == [
            (p.voltage, p.current) for p in stc_curve.points
        ]


class TestCurveFamilies:
    """Test parallel curve families."""

    def test_family_preserves_order(self, module, diode_params):
        conditions = [OperatingCondition(g, 25.0) for g in (200.0, 1000.0, 600.0)]
        curves = compute_curve_family(module, diode_params, conditions, resolution=60, max_workers=3)
        assert [c.condition for c in curves] == conditions

    def test_family_matches_serial(self, module, diode_params):
        conditions = [OperatingCondition(1000.0, t) for t in (25.0, 50.0)]
        curves = compute_curve_family(module, diode_params, conditions, resolution=60)
        for condition, curve in zip(conditions, curves):
            serial = compute_curve(
                module, diode_params, condition.irradiance, condition.temperature, 60
            )
            assert curve.points == serial.points

    def test_family_uses_process_pool(self, module, diode_params, monkeypatch):
        """Curves are dispatched to worker processes, not threads."""
        used = []

        class RecordingPool(ProcessPoolExecutor):
            def map(self, fn, *iterables, **kwargs):
                used.append(pickle.loads(pickle.dumps(fn)))
                return super().map(fn, *iterables, **kwargs)

        monkeypatch.setattr(single_diode, "ProcessPoolExecutor", RecordingPool)
        conditions = [OperatingCondition(g, 25.0) for g in (1000.0, 400.0)]
        curves = compute_curve_family(module, diode_params, conditions, resolution=40, max_workers=2)
        assert len(used) == 1
        assert used[0](conditions[1]).points == curves[1].points

    def test_single_worker_runs_in_process(self, module, diode_params, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("no pool expected")

        monkeypatch.setattr(single_diode, "ProcessPoolExecutor", fail)
        conditions = [OperatingCondition(g, 25.0) for g in (1000.0, 400.0)]
        curves = compute_curve_family(module, diode_params, conditions, resolution=40, max_workers=1)
        assert [c.condition for c in curves] == conditions

    def test_irradiance_sweep(self, module, diode_params):
        curves = irradiance_sweep(module, diode_params, resolution=60)
        assert list(curves) == [1000.0, 800.0, 600.0, 400.0, 200.0]
        isc_values = [c.photo_current for c in curves.values()]
        assert isc_values == sorted(isc_values, reverse=True)
        assert all(c.condition.temperature == 25.0 for c in curves.values())

    def test_temperature_sweep(self, module, diode_params):
        curves = temperature_sweep(module, diode_params, resolution=60)
        assert list(curves) == [75.0, 65.0, 55.0, 45.0, 35.0, 25.0]
        voc_values = [c.voc for c in curves.values()]
        assert voc_values == sorted(voc_values)


class TestDataFrames:
    """Test DataFrame conversion."""

    def test_curve_to_dataframe(self, stc_curve):
        df = stc_curve.to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["voltage", "current", "power"]
        assert len(df) == 141
        assert df["power"].iloc[10] == pytest.approx(df["voltage"].iloc[10] * df["current"].iloc[10])

    def test_curves_to_dataframe(self, module, diode_params):
        curves = irradiance_sweep(module, diode_params, levels=(1000.0, 500.0), resolution=50)
        df = curves_to_dataframe(curves)
        assert list(df.columns) == ["label", "irradiance", "temperature", "voltage", "current", "power"]
        assert len(df) == 102
        assert set(df["label"]) == {1000.0, 500.0}

    def test_empty_family(self):
        df = curves_to_dataframe({})
        assert df.empty
        assert "voltage" in df.columns
