"""
Coarse-to-fine projection of background values into a refinement patch.

A patch is only populated at the moment it is born; afterwards it evolves on
its own until the next birth overwrites it.
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit


@njit(cache=True)
def _copy_block(patch: np.ndarray, background: np.ndarray, rstarti: int, rstartj: int) -> None:
    nr_true = patch.shape[0]
    for jr in range(nr_true):
        for ir in range(nr_true):
            patch[jr, ir] = background[jr + rstartj, ir + rstarti]


@njit(cache=True)
def _bilinear(
    patch: np.ndarray,
    background: np.ndarray,
    rstarti: int,
    rstartj: int,
    expand: int,
    hr: float,
) -> None:
    """
    Two-pass separable interpolation.

    Pass 1 fills the fine rows that sit on coarse rows, interpolating along x.
    The last column is taken directly from the coarse grid so that no sample
    beyond ``rendi`` is ever read. Pass 2 fills the rows in between from the
    pass-1 rows, interpolating along y.
    """
    nr_true = patch.shape[0]
    rendi = rstarti + (nr_true - 1) // expand

    jb = rstartj
    for jr in range(0, nr_true, expand):
        for ir in range(nr_true - 1):
            xr = rstarti + hr * ir
            ib = int(xr)
            xb = float(ib)
            patch[jr, ir] = background[jb, ib + 1] * (xr - xb) + background[jb, ib] * (xb + 1.0 - xr)
        patch[jr, nr_true - 1] = background[jb, rendi]
        jb += 1

    for jr in range(nr_true - 1):
        yr = hr * jr
        jb = int(yr)
        jrb = jb * expand
        jrb1 = (jb + 1) * expand
        yb = math.floor(yr)
        for ir in range(nr_true):
            patch[jr, ir] = patch[jrb1, ir] * (yr - yb) + patch[jrb, ir] * (yb + 1.0 - yr)


def interpolate(
    patch: np.ndarray,
    background: np.ndarray,
    rstarti: int,
    rstartj: int,
    expand: int,
    hr: float,
) -> None:
    """
    Overwrite ``patch`` (shape ``(nr_true, nr_true)``) from ``background``.

    ``(rstarti, rstartj)`` is the patch origin in background cells. With
    ``expand == 1`` the patch is a verbatim copy of the background block.
    """
    if expand == 1:
        _copy_block(patch, background, int(rstarti), int(rstartj))
    else:
        _bilinear(patch, background, int(rstarti), int(rstartj), int(expand), float(hr))


__all__ = ["interpolate"]
