"""
Stencil weight tables.

The weights discretise a divergence operator: applied to a linear field
``a*i + b*j`` they return the constant ``a + b`` at every interior point. The
validator relies on this to derive its reference norms analytically.

Tables are indexed ``w[dy + R, dx + R]`` so that they line up with the grids,
which are stored as ``grid[j, i]``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

STAR = "star"
COMPACT = "compact"
SHAPES = (STAR, COMPACT)


def _check_shape(shape: str) -> None:
    if shape not in SHAPES:
        raise ValueError(f"Unknown stencil shape '{shape}', expected one of {SHAPES}")


def stencil_size(radius: int, shape: str) -> int:
    """Number of points touched by the stencil."""
    _check_shape(shape)
    if shape == STAR:
        return 4 * radius + 1
    return (2 * radius + 1) * (2 * radius + 1)


def _star_weights(radius: int) -> np.ndarray:
    w = np.zeros((2 * radius + 1, 2 * radius + 1), dtype=np.float64)
    c = radius
    for k in range(1, radius + 1):
        value = 1.0 / (2.0 * k * radius)
        w[c + k, c] = value   # (0, +k)
        w[c, c + k] = value   # (+k, 0)
        w[c - k, c] = -value  # (0, -k)
        w[c, c - k] = -value  # (-k, 0)
    return w


def _compact_weights(radius: int) -> np.ndarray:
    w = np.zeros((2 * radius + 1, 2 * radius + 1), dtype=np.float64)
    c = radius
    for k in range(1, radius + 1):
        edge = 1.0 / (4.0 * k * (2.0 * k - 1) * radius)
        for m in range(-k + 1, k):
            w[c + k, c + m] = edge   # top edge of ring k
            w[c - k, c + m] = -edge  # bottom edge
            w[c + m, c + k] = edge   # right edge
            w[c + m, c - k] = -edge  # left edge
        diag = 1.0 / (4.0 * k * radius)
        w[c + k, c + k] = diag
        w[c - k, c - k] = -diag
    return w


def build_weights(radius: int, shape: str = STAR, dtype=np.float64) -> np.ndarray:
    """
    Build the ``(2R+1, 2R+1)`` coefficient table for ``shape``.

    Coefficients are computed in double precision and cast once to ``dtype``.
    """
    _check_shape(shape)
    if radius < 1:
        raise ValueError(f"Stencil radius must be positive: {radius}")
    if shape == STAR:
        w = _star_weights(radius)
    else:
        w = _compact_weights(radius)
    return w.astype(dtype)


def scale_weights(weights: np.ndarray, expand: int) -> np.ndarray:
    """Weights for a refinement patch whose mesh spacing is ``1/expand``."""
    return weights * weights.dtype.type(expand)


@dataclass(frozen=True)
class WeightTables:
    """Read-only weight tables shared by every stencil pass of a run."""

    background: np.ndarray
    refinement: np.ndarray
    radius: int
    shape: str

    @property
    def size(self) -> int:
        return stencil_size(self.radius, self.shape)


def build_weight_tables(
    radius: int, shape: str = STAR, expand: int = 1, dtype=np.float64
) -> WeightTables:
    background = build_weights(radius, shape, dtype)
    refinement = scale_weights(background, expand)
    background.setflags(write=False)
    refinement.setflags(write=False)
    return WeightTables(
        background=background, refinement=refinement, radius=radius, shape=shape
    )


__all__ = [
    "STAR",
    "COMPACT",
    "SHAPES",
    "stencil_size",
    "build_weights",
    "scale_weights",
    "WeightTables",
    "build_weight_tables",
]
