"""
Tests for coarse-to-fine interpolation at patch birth.
"""

import numpy as np
import pytest

from amr_stencil.amr_sim import linear_field
from amr_stencil.interpolate import interpolate


def test_no_refinement_is_exact_copy():
    rng = np.random.default_rng(0)
    n, nr = 20, 6
    background = rng.standard_normal((n, n))
    patch = np.zeros((nr + 1, nr + 1))
    interpolate(patch, background, 13, 4, 1, 1.0)
    np.testing.assert_array_equal(patch, background[4:4 + nr + 1, 13:13 + nr + 1])


@pytest.mark.parametrize("expand", [2, 4, 8])
@pytest.mark.parametrize("origin", [(0, 0), (9, 9), (0, 9), (9, 0)])
def test_linear_field_interpolated_exactly(expand, origin):
    n, nr = 16, 6
    rstarti, rstartj = origin
    hr = 1.0 / expand
    nr_true = nr * expand + 1
    background = linear_field(n)
    patch = np.full((nr_true, nr_true), np.nan)
    interpolate(patch, background, rstarti, rstartj, expand, hr)

    jr, ir = np.indices((nr_true, nr_true))
    expected = (rstarti + ir * hr) + (rstartj + jr * hr)
    np.testing.assert_allclose(patch, expected, rtol=0, atol=1e-12)


def test_bilinear_field_interpolated_exactly():
    """Separable two-pass interpolation reproduces a + b*x + c*y + d*x*y."""
    n, nr, expand = 12, 5, 4
    hr = 1.0 / expand
    nr_true = nr * expand + 1
    j, i = np.indices((n, n), dtype=np.float64)
    background = 0.5 + 2.0 * i - 1.0 * j + 0.25 * i * j
    rstarti, rstartj = 3, 6

    patch = np.zeros((nr_true, nr_true))
    interpolate(patch, background, rstarti, rstartj, expand, hr)

    jr, ir = np.indices((nr_true, nr_true))
    x = rstarti + ir * hr
    y = rstartj + jr * hr
    expected = 0.5 + 2.0 * x - 1.0 * y + 0.25 * x * y
    np.testing.assert_allclose(patch, expected, rtol=0, atol=1e-12)


def test_coarse_aligned_points_match_background():
    rng = np.random.default_rng(5)
    n, nr, expand = 10, 4, 2
    nr_true = nr * expand + 1
    background = rng.standard_normal((n, n))
    rstarti, rstartj = 5, 2
    patch = np.zeros((nr_true, nr_true))
    interpolate(patch, background, rstarti, rstartj, expand, 1.0 / expand)

    # Fine points that coincide with coarse points carry the coarse values
    coarse_block = background[rstartj:rstartj + nr + 1, rstarti:rstarti + nr + 1]
    np.testing.assert_allclose(patch[::expand, ::expand], coarse_block, rtol=0, atol=1e-14)
    # Last column is pinned to the coarse sample at the patch edge
    np.testing.assert_array_equal(
        patch[::expand, nr_true - 1], background[rstartj:rstartj + nr + 1, rstarti + nr]
    )


def test_whole_patch_overwritten():
    n, nr, expand = 9, 3, 2
    nr_true = nr * expand + 1
    background = linear_field(n)
    patch = np.full((nr_true, nr_true), 1.0e30)
    interpolate(patch, background, 0, 0, expand, 0.5)
    assert np.all(patch < 1.0e3)
