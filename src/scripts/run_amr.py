#!/usr/bin/env python3
"""
Serial AMR Stencil Runner

Applies a space-invariant, linear, symmetric stencil to a square grid with
periodic introduction and removal of refinement subgrids, then validates the
result and reports the rate.

Usage:
    run_amr.py <iterations> <background grid size> <refinement size>
               <refinement level> <refinement period> <refinement duration>
               <refinement sub-iterations> [tile_size]
"""

import argparse
import sys

from amr_stencil import AMRConfig, AMRSimulator, ConfigurationError, utils
from amr_stencil.weights import SHAPES

POSITIONAL = (
    "iterations",
    "n",
    "nr",
    "r_level",
    "period",
    "duration",
    "sub_iterations",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Serial AMR stencil execution on 2D grid",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("iterations", type=int, nargs="?", help="number of iterations")
    parser.add_argument("n", type=int, nargs="?", help="background grid size")
    parser.add_argument("nr", type=int, nargs="?", help="refinement size in background cells")
    parser.add_argument("r_level", type=int, nargs="?", help="refinement level")
    parser.add_argument("period", type=int, nargs="?", help="refinement period")
    parser.add_argument("duration", type=int, nargs="?", help="refinement duration")
    parser.add_argument("sub_iterations", type=int, nargs="?", help="refinement sub-iterations")
    parser.add_argument("tile_size", type=int, nargs="?", default=None, help="loop nest block factor")
    parser.add_argument("--radius", type=int, default=None, help="stencil radius (default: 2)")
    parser.add_argument("--stencil", choices=SHAPES, default=None, help="stencil shape (default: star)")
    parser.add_argument(
        "--precision",
        choices=["single", "double"],
        default=None,
        help="element precision (default: double)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON/TOML parameter file; explicit arguments take precedence",
    )
    parser.add_argument("--out", type=str, default=None, help="write a JSON summary here")
    parser.add_argument("--verbose", action="store_true", help="print all norms")
    return parser


def collect_params(args: argparse.Namespace) -> dict:
    params = utils.load_params(args.config) if args.config else {}
    for name in POSITIONAL:
        value = getattr(args, name)
        if value is not None:
            params[name] = value
    if args.tile_size is not None:
        params["tile_size"] = args.tile_size
    if args.radius is not None:
        params["radius"] = args.radius
    if args.stencil is not None:
        params["shape"] = args.stencil
    if args.precision is not None:
        params["precision"] = args.precision
    if args.verbose:
        params["verbose"] = True
    return params


def print_header(config: AMRConfig) -> None:
    print(f"Background grid size = {config.n}")
    print(f"Radius of stencil    = {config.radius}")
    print(f"Type of stencil      = {config.shape}")
    if config.precision == "double":
        print("Data type            = double precision")
    else:
        print("Data type            = single precision")
    if config.tiling:
        print(f"Tile size            = {config.tile_size}")
    else:
        print("Untiled")
    print(f"Number of iterations = {config.iterations}")
    print("Refinements:")
    print(f"   Coarse grid cells = {config.nr}")
    print(f"   Grid size         = {config.nr_true}")
    print(f"   Period            = {config.period}")
    print(f"   Duration          = {config.duration}")
    print(f"   Level             = {config.r_level}")
    print(f"   Sub-iterations    = {config.sub_iterations}")


def print_report(result: utils.BenchmarkResult, verbose: bool) -> None:
    for check in result.report.checks:
        if not check.ok:
            print(
                f"ERROR: L1 norm {check.label} = {check.measured:f}, "
                f"Reference L1 norm = {check.reference:f}"
            )
        elif verbose:
            print(
                f"Reference L1 norm {check.label} = {check.reference:f}, "
                f"L1 norm = {check.measured:f}"
            )
    if result.validated:
        print("Solution validates")
    else:
        print("Solution does not validate")
    print(f"Rate (MFlops/s): {result.mflops:f}  Avg time (s): {result.avg_time:f}")


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    print("Serial AMR stencil execution on 2D grid")

    try:
        config = AMRConfig.from_params(collect_params(args))
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        parser.print_usage()
        return 1

    print_header(config)
    simulator = AMRSimulator(config)
    result = simulator.run()
    print_report(result, config.verbose)

    if args.out is not None:
        utils.save_result(args.out, result, meta={"timestamp": utils.now_str()})
        print(f"Summary saved to {args.out}")

    return 0 if result.validated else 1


if __name__ == "__main__":
    sys.exit(main())
