"""
Tests for the stencil kernels and the applicator selection.
"""

import numpy as np
import pytest

from amr_stencil.amr_sim import linear_field
from amr_stencil.stencil import (
    add_constant,
    compact_tiled,
    compact_untiled,
    make_applicator,
    star_tiled,
    star_untiled,
)
from amr_stencil.weights import COMPACT, STAR, build_weights


def _reference_apply(src, w):
    """Straightforward slice-based application, used as an oracle."""
    r = w.shape[0] // 2
    s = src.shape[0]
    out = np.zeros_like(src)
    for dy in range(-r, r + 1):
        for dx in range(-r, r + 1):
            coeff = w[dy + r, dx + r]
            if coeff == 0.0:
                continue
            out[r:s - r, r:s - r] += coeff * src[r + dy:s - r + dy, r + dx:s - r + dx]
    return out


@pytest.mark.parametrize("shape", [STAR, COMPACT])
@pytest.mark.parametrize("tile_size", [0, 4, 7])
def test_linear_field_gives_constant_interior(shape, tile_size):
    n, radius = 17, 2
    src = linear_field(n)
    dst = np.zeros_like(src)
    apply = make_applicator(shape, radius, tile_size)
    apply(src, dst, build_weights(radius, shape))

    interior = dst[radius:n - radius, radius:n - radius]
    np.testing.assert_allclose(interior, 2.0, atol=1e-12)


@pytest.mark.parametrize("shape", [STAR, COMPACT])
def test_halo_is_never_written(shape):
    n, radius = 12, 3
    src = linear_field(n)
    dst = np.full_like(src, -7.0)
    make_applicator(shape, radius)(src, dst, build_weights(radius, shape))

    mask = np.ones(dst.shape, dtype=bool)
    mask[radius:n - radius, radius:n - radius] = False
    assert np.all(dst[mask] == -7.0)


@pytest.mark.parametrize("shape", [STAR, COMPACT])
def test_matches_slice_reference(shape):
    rng = np.random.default_rng(3)
    n, radius = 15, 2
    src = rng.standard_normal((n, n))
    w = build_weights(radius, shape)
    dst = np.zeros_like(src)
    make_applicator(shape, radius)(src, dst, w)
    np.testing.assert_allclose(dst, _reference_apply(src, w), rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize(
    "untiled, tiled, shape",
    [(star_untiled, star_tiled, STAR), (compact_untiled, compact_tiled, COMPACT)],
)
@pytest.mark.parametrize("tile", [1, 3, 5, 8, 64])
def test_tiled_and_untiled_agree_exactly(untiled, tiled, shape, tile):
    rng = np.random.default_rng(11)
    n, radius = 21, 2
    src = rng.standard_normal((n, n))
    w = build_weights(radius, shape)
    a = np.zeros_like(src)
    b = np.zeros_like(src)
    untiled(src, a, w, radius, 0)
    tiled(src, b, w, radius, tile)
    np.testing.assert_array_equal(a, b)


def test_accumulation_is_additive():
    n, radius = 10, 1
    src = linear_field(n)
    w = build_weights(radius, STAR)
    apply = make_applicator(STAR, radius)
    dst = np.zeros_like(src)
    apply(src, dst, w)
    apply(src, dst, w)
    apply(src, dst, w)
    np.testing.assert_allclose(dst[1:-1, 1:-1], 6.0, atol=1e-12)


def test_single_precision_buffers():
    n, radius = 13, 2
    src = linear_field(n, np.float32)
    dst = np.zeros_like(src)
    make_applicator(COMPACT, radius, 4)(src, dst, build_weights(radius, COMPACT, np.float32))
    assert dst.dtype == np.float32
    np.testing.assert_allclose(dst[radius:-radius, radius:-radius], 2.0, atol=1e-4)


def test_make_applicator_selects_kernel_once():
    untiled = make_applicator(STAR, 2, 0)
    assert not untiled.tiled
    assert untiled.kernel is star_untiled
    negative = make_applicator(STAR, 2, -5)
    assert negative.tile_size == 0
    tiled = make_applicator(COMPACT, 2, 16)
    assert tiled.tiled
    assert tiled.kernel is compact_tiled
    with pytest.raises(ValueError):
        make_applicator("hexagon", 2)


def test_add_constant():
    buf = np.arange(12, dtype=np.float64).reshape(3, 4)
    add_constant(buf, 1.0)
    np.testing.assert_array_equal(buf, np.arange(12).reshape(3, 4) + 1.0)

    buf32 = np.zeros((4, 4), dtype=np.float32)
    add_constant(buf32, 1.0)
    assert buf32.dtype == np.float32
    assert np.all(buf32 == 1.0)
