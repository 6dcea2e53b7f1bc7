#!/usr/bin/env python3
"""
I-V Curve Simulation Script.

Computes the I-V curve of a PV module at one operating condition, logs
the maximum power point, fill factor, efficiency and diagnostics, and
optionally writes the curve (or a comparative curve family) to CSV.

Usage:
    python scripts/run_simulation.py [--config PATH] [--irradiance G]
        [--temperature T] [--resolution N] [--no-calibrate]
        [--sweep irradiance|temperature] [--csv PATH] [--log-level LEVEL]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pv_iv_curve.calculations.simulation import simulate_from_config
from pv_iv_curve.calculations.single_diode import (
    curves_to_dataframe,
    irradiance_sweep,
    temperature_sweep,
)
from pv_iv_curve.utils.config import ConfigurationError, SimulationConfig, load_config
from pv_iv_curve.utils.constants import UNITS
from pv_iv_curve.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(
        description="Simulate the I-V curve of a PV module (single-diode model)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration (default: config/simulation.yaml)",
    )
    parser.add_argument("--irradiance", type=float, help="Irradiance in W/m²")
    parser.add_argument("--temperature", type=float, help="Cell temperature in °C")
    parser.add_argument("--resolution", type=int, help="Number of voltage steps (50-400)")
    parser.add_argument(
        "--no-calibrate",
        action="store_true",
        help="Do not calibrate (n, Rs, Rsh) near STC",
    )
    parser.add_argument(
        "--sweep",
        choices=["irradiance", "temperature"],
        help="Write a comparative curve family instead of the single curve",
    )
    parser.add_argument("--csv", type=str, help="Write curve samples to this CSV file")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    return parser


def apply_overrides(config: SimulationConfig, args: argparse.Namespace) -> SimulationConfig:
    """Merge command-line overrides into the loaded configuration."""
    overrides = config.model_dump()
    if args.irradiance is not None:
        overrides["irradiance"] = args.irradiance
    if args.temperature is not None:
        overrides["temperature"] = args.temperature
    if args.resolution is not None:
        overrides["resolution"] = args.resolution
    if args.no_calibrate:
        overrides["auto_calibrate"] = False
    return SimulationConfig.from_dict(overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """Main simulation entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    result = simulate_from_config(config)
    analysis = result.analysis

    u = UNITS
    logger.info("=" * 50)
    logger.info(
        f"{config.module.name} @ {config.irradiance:g} {u['irradiance']}, "
        f"{config.temperature:g} {u['temperature']}"
    )
    logger.info("=" * 50)
    logger.info(
        f"  n={result.params.n:.3f}  Rs={result.params.rs:.4f} {u['resistance']}  "
        f"Rsh={result.params.rsh:.1f} {u['resistance']}"
        + (" (calibrated)" if result.calibration and result.calibration.adopted else "")
    )
    logger.info(
        f"  Isc = {analysis.isc:.3f} {u['current']}   Voc = {analysis.voc:.2f} {u['voltage']}"
    )
    logger.info(
        f"  MPP = {analysis.mpp.voltage:.2f} {u['voltage']} × {analysis.mpp.current:.3f} {u['current']} "
        f"= {analysis.mpp.power:.1f} {u['power']}"
    )
    logger.info(
        f"  FF = {analysis.fill_factor * 100:.1f}{u['fill_factor']}   "
        f"efficiency = {analysis.efficiency * 100:.2f}{u['efficiency']}"
    )
    for diagnostic in analysis.diagnostics:
        status = "PASS" if diagnostic.passed else "FAIL"
        logger.info(f"  [{status}] {diagnostic.name}: {diagnostic.message}")

    if args.csv:
        if args.sweep == "irradiance":
            df = curves_to_dataframe(
                irradiance_sweep(
                    config.to_module_spec(), result.params, resolution=config.resolution
                )
            )
        elif args.sweep == "temperature":
            df = curves_to_dataframe(
                temperature_sweep(
                    config.to_module_spec(), result.params, resolution=config.resolution
                )
            )
        else:
            df = result.curve.to_dataframe()
        csv_path = Path(args.csv)
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(csv_path, index=False)
        logger.info(f"Wrote {len(df)} samples to {csv_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
