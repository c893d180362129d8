"""
    Runs a single scenario and prints the layer stack, the optical
    state of every layer, the transfer trace and the resulting photon
    flux.

    python -m layertrans [scenario.yaml] [--table profile.csv] [--ppm 411]
"""
import argparse
import logging
import sys
from typing import Optional, Sequence

import pandas as pd

from layertrans.config import ScenarioConfig, load_config
from layertrans.errors import LayertransError
from layertrans.pipeline import run_scenario


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="layertrans",
        description="Layered CO2 15 micron band radiative transfer.",
    )
    parser.add_argument("config", nargs="?", default=None,
                        help="Scenario YAML file, defaults are used if omitted")
    parser.add_argument("--table", default=None,
                        help="CSV profile table, replaces generated layers")
    parser.add_argument("--ppm", type=float, default=None,
                        help="CO2 concentration of generated layers")
    parser.add_argument("--zenith", type=float, default=None,
                        help="Viewing zenith angle in degrees")
    parser.add_argument("--summary-only", action="store_true",
                        help="Only print the summary")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Verbose output")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        if args.config:
            config = load_config(args.config)
        else:
            config = ScenarioConfig()
        config = config.with_overrides(
            profile_table=args.table,
            co2_ppm=args.ppm,
            zenith_angle=args.zenith,
            verbose=args.verbose or None,
        )
        report = run_scenario(config)
    except LayertransError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.summary_only:
        with pd.option_context(
            "display.max_rows", None, "display.width", 160
        ):
            print("Layers")
            print(report.layer_frame()[["start_altitude", "thickness",
                                        "temperature", "pressure"]])
            print("\nOptical state")
            print(report.optical_frame()[["boltzmann_factor", "p_radiative",
                                          "kappa", "emission_coefficient",
                                          "issues"]])
            print("\nTransfer trace")
            print(report.trace_frame())
            print()
    print(report.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
