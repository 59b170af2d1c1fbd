#!/usr/bin/env python3
"""
Tile-Size Sweep Runner

Runs one AMR stencil configuration once per requested tile size and records
rate and validation status of every run in a manifest. Concurrent jobs share
the machine, so keep --jobs at 1 when the rates are meant to be compared.
"""

import argparse
import json
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict

from amr_stencil import AMRConfig, AMRSimulator, utils


def run_single_benchmark(params: Dict[str, Any], tile_size: int) -> Dict[str, Any]:
    """
    Run one configuration with the given tile size.

    Module-level so that it can be pickled by ProcessPoolExecutor.
    """
    config = AMRConfig.from_params({**params, "tile_size": tile_size})
    result = AMRSimulator(config).run()
    return {
        "tile_size": tile_size,
        "tiled": config.tiling,
        "validated": result.validated,
        "mflops": result.mflops,
        "avg_time": result.avg_time,
        "norm": result.norm,
        "norms_r": result.norms_r,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Sweep loop tile sizes for an AMR stencil configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--iterations", type=int, default=10)
    parser.add_argument("--n", type=int, default=1000, help="background grid size")
    parser.add_argument("--nr", type=int, default=100, help="refinement size")
    parser.add_argument("--r-level", type=int, default=1, help="refinement level")
    parser.add_argument("--period", type=int, default=2)
    parser.add_argument("--duration", type=int, default=1)
    parser.add_argument("--sub-iterations", type=int, default=2)
    parser.add_argument("--radius", type=int, default=2)
    parser.add_argument("--stencil", choices=["star", "compact"], default="star")
    parser.add_argument("--precision", choices=["single", "double"], default="double")
    parser.add_argument(
        "--tiles",
        type=int,
        nargs="+",
        default=[0, 16, 32, 64, 128],
        help="tile sizes to try; 0 means untiled (default: 0 16 32 64 128)",
    )
    parser.add_argument("--jobs", type=int, default=1, help="parallel processes (default: 1)")
    parser.add_argument("--name", type=str, default="sweep", help="name for the output folder")

    args = parser.parse_args()

    params = {
        "iterations": args.iterations,
        "n": args.n,
        "nr": args.nr,
        "r_level": args.r_level,
        "period": args.period,
        "duration": args.duration,
        "sub_iterations": args.sub_iterations,
        "radius": args.radius,
        "shape": args.stencil,
        "precision": args.precision,
    }
    # Fail fast on a bad configuration before spawning anything
    AMRConfig.from_params(params)

    timestamp = utils.now_str()
    batch_dir = Path("results") / "sweeps" / f"{args.name}_{args.stencil}_n{args.n}_{timestamp}"
    batch_dir.mkdir(parents=True, exist_ok=True)

    manifest = {
        "params": params,
        "tiles": args.tiles,
        "jobs": args.jobs,
        "timestamp": timestamp,
        "batch_name": args.name,
    }
    manifest_path = batch_dir / "manifest.json"
    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    print("Tile sweep started:")
    print(f"  Stencil: {args.stencil} R={args.radius} ({args.precision})")
    print(f"  Grid: {args.n}, refinement {args.nr} level {args.r_level}")
    print(f"  Tile sizes: {args.tiles}")
    print(f"  Output directory: {batch_dir}")
    print()

    start_time = time.time()
    results = []
    failed = []

    with ProcessPoolExecutor(max_workers=args.jobs) as executor:
        future_to_tile = {
            executor.submit(run_single_benchmark, params, tile): tile for tile in args.tiles
        }
        completed = 0
        for future in as_completed(future_to_tile):
            completed += 1
            tile = future_to_tile[future]
            try:
                result = future.result()
            except Exception as e:
                failed.append({"tile_size": tile, "error": str(e)})
                print(f"  [{completed}/{len(args.tiles)}] FAILED: tile={tile} - {e}")
                continue
            results.append(result)
            status = "ok" if result["validated"] else "INVALID"
            print(
                f"  [{completed}/{len(args.tiles)}] tile={tile}: "
                f"{result['mflops']:.2f} MFlops/s ({status})"
            )

    elapsed_time = time.time() - start_time

    results.sort(key=lambda r: r["tile_size"])
    invalid = [r for r in results if not r["validated"]]
    manifest["results"] = {
        "total": len(args.tiles),
        "successful": len(results),
        "failed": len(failed),
        "invalid": len(invalid),
        "elapsed_seconds": elapsed_time,
    }
    manifest["runs"] = results
    if failed:
        manifest["failures"] = failed

    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    print()
    print("=" * 60)
    print("Tile sweep completed!")
    if results:
        best = max(results, key=lambda r: r["mflops"])
        print(f"  Fastest: tile={best['tile_size']} at {best['mflops']:.2f} MFlops/s")
    print(f"  Invalid runs: {len(invalid)}/{len(args.tiles)}")
    print(f"  Failed runs: {len(failed)}/{len(args.tiles)}")
    print(f"  Total time: {elapsed_time:.2f} seconds")
    print(f"  Manifest: {manifest_path}")
    print("=" * 60)

    return 0 if not failed and not invalid else 1


if __name__ == "__main__":
    sys.exit(main())
