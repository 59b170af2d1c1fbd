# src/scripts/plot_grids.py
"""
Render the stencil accumulators of a finished run.

The background grid is drawn with the four refinement footprints outlined;
each patch accumulator gets its own panel. Halo cells are masked so only the
points the stencil actually wrote are shown.
"""

import argparse
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Rectangle

from amr_stencil import AMRConfig, AMRSimulator, utils


def interior_masked(buffer: np.ndarray, radius: int) -> np.ma.MaskedArray:
    """Mask the halo of ``buffer``."""
    mask = np.ones(buffer.shape, dtype=bool)
    mask[radius:-radius, radius:-radius] = False
    return np.ma.masked_array(buffer.astype(np.float64), mask=mask)


def render_grids(sim: AMRSimulator, output_path, cmap: str = "viridis") -> None:
    cfg = sim.config
    radius = cfg.radius
    fig, axes = plt.subplots(1, 1 + cfg.num_patches, figsize=(4 * (1 + cfg.num_patches), 4))

    ax = axes[0]
    im = ax.imshow(interior_masked(sim.bg_out, radius), cmap=cmap, interpolation="nearest", origin="lower")
    for g, (rstarti, rstartj) in enumerate(sim.origins):
        # Footprint covers background points origin .. origin + nr
        ax.add_patch(
            Rectangle(
                (rstarti - 0.5, rstartj - 0.5),
                cfg.nr + 1,
                cfg.nr + 1,
                fill=False,
                edgecolor="red",
                linewidth=1.0,
            )
        )
        ax.text(rstarti, rstartj, str(g), color="red", fontsize=8)
    ax.set_title(f"Background ({cfg.n}x{cfg.n})")
    plt.colorbar(im, ax=ax, fraction=0.046)

    for g in range(cfg.num_patches):
        ax = axes[1 + g]
        _, patch_out = sim.patch(g)
        im = ax.imshow(interior_masked(patch_out, radius), cmap=cmap, interpolation="nearest", origin="lower")
        ax.set_title(f"Refinement {g} ({cfg.nr_true}x{cfg.nr_true})")
        plt.colorbar(im, ax=ax, fraction=0.046)

    for ax in axes:
        ax.set_xticks([])
        ax.set_yticks([])

    fig.suptitle(
        f"{cfg.shape} stencil R={cfg.radius}, {cfg.iterations} iterations, "
        f"level {cfg.r_level}, period {cfg.period}, duration {cfg.duration}"
    )

    if output_path:
        plt.savefig(output_path, dpi=150, bbox_inches="tight")
        print(f"Saved to {output_path}")

    plt.close(fig)


def main():
    parser = argparse.ArgumentParser(description="Plot background and refinement accumulators")
    parser.add_argument("--config", default=None, help="JSON/TOML parameter file")
    parser.add_argument("--iterations", type=int, default=20)
    parser.add_argument("--n", type=int, default=64)
    parser.add_argument("--nr", type=int, default=12)
    parser.add_argument("--r-level", type=int, default=1)
    parser.add_argument("--period", type=int, default=3)
    parser.add_argument("--duration", type=int, default=2)
    parser.add_argument("--sub-iterations", type=int, default=1)
    parser.add_argument("--stencil", choices=["star", "compact"], default="star")
    parser.add_argument("--cmap", default="viridis", help="Matplotlib colormap (default: viridis)")
    parser.add_argument("--out", default=None, help="Output filename")

    args = parser.parse_args()

    if args.config:
        params = utils.load_params(args.config)
    else:
        params = {
            "iterations": args.iterations,
            "n": args.n,
            "nr": args.nr,
            "r_level": args.r_level,
            "period": args.period,
            "duration": args.duration,
            "sub_iterations": args.sub_iterations,
            "shape": args.stencil,
        }
    config = AMRConfig.from_params(params)

    sim = AMRSimulator(config)
    result = sim.run()
    print(f"Validated: {result.validated}")

    if args.out is None:
        out_path = Path("results") / f"grids_{config.shape}_n{config.n}_{utils.now_str()}.png"
        out_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        out_path = args.out

    render_grids(sim, out_path, args.cmap)


if __name__ == "__main__":
    main()
