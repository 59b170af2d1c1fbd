"""
Stencil application kernels.

Each kernel adds the weighted neighbourhood sum into ``dst`` at every interior
point ``R <= i, j < S - R`` of a square buffer of side ``S``. Halo points are
never written. Accumulation is additive: callers own any reset of ``dst``.

There is one compiled kernel per (shape, loop order). The pair is picked once
by :func:`make_applicator`, so the hot loops never branch on the shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np
from numba import njit

from .weights import COMPACT, STAR, _check_shape

###############################################################################
# Star stencil
###############################################################################


@njit(cache=True, boundscheck=False)
def _star_point(src: np.ndarray, dst: np.ndarray, w: np.ndarray, r: int, i: int, j: int) -> None:
    acc = dst[j, i]
    for jj in range(-r, r + 1):
        acc += w[jj + r, r] * src[j + jj, i]
    for ii in range(-r, 0):
        acc += w[r, ii + r] * src[j, i + ii]
    for ii in range(1, r + 1):
        acc += w[r, ii + r] * src[j, i + ii]
    dst[j, i] = acc


@njit(cache=True, boundscheck=False)
def star_untiled(src: np.ndarray, dst: np.ndarray, w: np.ndarray, r: int, tile: int) -> None:
    s = src.shape[0]
    for j in range(r, s - r):
        for i in range(r, s - r):
            _star_point(src, dst, w, r, i, j)


@njit(cache=True, boundscheck=False)
def star_tiled(src: np.ndarray, dst: np.ndarray, w: np.ndarray, r: int, tile: int) -> None:
    s = src.shape[0]
    for jt in range(r, s - r, tile):
        jend = min(s - r, jt + tile)
        for it in range(r, s - r, tile):
            iend = min(s - r, it + tile)
            for j in range(jt, jend):
                for i in range(it, iend):
                    _star_point(src, dst, w, r, i, j)


###############################################################################
# Compact (dense square) stencil
###############################################################################


@njit(cache=True, boundscheck=False)
def _compact_point(src: np.ndarray, dst: np.ndarray, w: np.ndarray, r: int, i: int, j: int) -> None:
    acc = dst[j, i]
    for jj in range(-r, r + 1):
        for ii in range(-r, r + 1):
            acc += w[jj + r, ii + r] * src[j + jj, i + ii]
    dst[j, i] = acc


@njit(cache=True, boundscheck=False)
def compact_untiled(src: np.ndarray, dst: np.ndarray, w: np.ndarray, r: int, tile: int) -> None:
    s = src.shape[0]
    for j in range(r, s - r):
        for i in range(r, s - r):
            _compact_point(src, dst, w, r, i, j)


@njit(cache=True, boundscheck=False)
def compact_tiled(src: np.ndarray, dst: np.ndarray, w: np.ndarray, r: int, tile: int) -> None:
    s = src.shape[0]
    for jt in range(r, s - r, tile):
        jend = min(s - r, jt + tile)
        for it in range(r, s - r, tile):
            iend = min(s - r, it + tile)
            for j in range(jt, jend):
                for i in range(it, iend):
                    _compact_point(src, dst, w, r, i, j)


###############################################################################
# Buffer helpers
###############################################################################


@njit(cache=True)
def add_constant(buffer: np.ndarray, value: float) -> None:
    """
    Add ``value`` to every cell of a 2-D buffer in place.

    The reference norms assume this shift after every update, so it must not
    be dropped even though it has no effect on the stencil response.
    """
    rows, cols = buffer.shape
    for j in range(rows):
        for i in range(cols):
            buffer[j, i] += value


###############################################################################
# Strategy selection
###############################################################################

_KERNELS = {
    (STAR, False): star_untiled,
    (STAR, True): star_tiled,
    (COMPACT, False): compact_untiled,
    (COMPACT, True): compact_tiled,
}


@dataclass(frozen=True)
class StencilApplicator:
    """A stencil shape bound to one loop order, fixed for the whole run."""

    shape: str
    radius: int
    tile_size: int
    kernel: Callable[..., None]

    @property
    def tiled(self) -> bool:
        return self.tile_size > 0

    def __call__(self, src: np.ndarray, dst: np.ndarray, weights: np.ndarray) -> None:
        self.kernel(src, dst, weights, self.radius, self.tile_size)


def make_applicator(shape: str, radius: int, tile_size: int = 0) -> StencilApplicator:
    """
    Select the kernel for ``shape``.

    ``tile_size <= 0`` selects the plain row-major loop.
    """
    _check_shape(shape)
    tiled = tile_size > 0
    return StencilApplicator(
        shape=shape,
        radius=int(radius),
        tile_size=int(tile_size) if tiled else 0,
        kernel=_KERNELS[(shape, tiled)],
    )


__all__ = [
    "star_untiled",
    "star_tiled",
    "compact_untiled",
    "compact_tiled",
    "add_constant",
    "StencilApplicator",
    "make_applicator",
]
