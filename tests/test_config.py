"""
Tests for run configuration and its validation.
"""

import numpy as np
import pytest

from amr_stencil import AMRConfig, AMRSimulator, ConfigurationError

BASE = dict(iterations=5, n=20, nr=4, r_level=0, period=1, duration=1, sub_iterations=1)


def _config(**overrides):
    return AMRConfig(**{**BASE, **overrides})


def test_defaults_and_derived_values():
    cfg = _config(r_level=3)
    assert cfg.radius == 2
    assert cfg.shape == "star"
    assert cfg.precision == "double"
    assert cfg.expand == 8
    assert cfg.hr == 0.125
    assert cfg.nr_true == 33
    assert cfg.dtype == np.float64
    assert cfg.epsilon == 1e-8


def test_single_precision():
    cfg = _config(precision="single")
    assert cfg.dtype == np.float32
    assert cfg.epsilon == 1e-3


def test_tiling_flag():
    assert not _config().tiling
    assert _config(tile_size=8).tiling
    assert _config(tile_size=8).effective_tile_size == 8
    assert _config(tile_size=20).tiling
    # Out of range disables tiling
    assert not _config(tile_size=21).tiling
    assert _config(tile_size=21).effective_tile_size == 0
    assert not _config(tile_size=-3).tiling


def test_refinement_not_contained_rejected_before_allocation(monkeypatch):
    """nr >= n fails while building the config, so no simulator (and no buffer) exists."""
    allocated = []
    monkeypatch.setattr(AMRSimulator, "__init__", lambda self, cfg: allocated.append(cfg))
    with pytest.raises(ConfigurationError) as excinfo:
        AMRSimulator(_config(nr=20))
    assert "20" in str(excinfo.value)
    assert allocated == []


@pytest.mark.parametrize(
    "overrides",
    [
        dict(iterations=0),
        dict(n=1),
        dict(nr=0),
        dict(nr=25),
        dict(r_level=-1),
        dict(period=0),
        dict(duration=0),
        dict(period=2, duration=3),
        dict(sub_iterations=0),
        dict(radius=0),
        dict(radius=10),
        dict(nr=2, radius=2),
        dict(shape="hexagon"),
        dict(precision="half"),
        dict(num_patches=3),
    ],
)
def test_invalid_values(overrides):
    with pytest.raises(ConfigurationError):
        _config(**overrides)


def test_radius_checked_against_refined_size():
    # nr_true = 2*2 + 1 = 5 fits a radius-2 stencil once refined
    cfg = _config(nr=2, r_level=1, radius=2)
    assert cfg.nr_true == 5


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_from_params():
    cfg = AMRConfig.from_params({**BASE, "shape": "compact", "tile_size": 4})
    assert cfg.shape == "compact"
    assert cfg.tile_size == 4
    assert cfg.to_dict()["n"] == 20


def test_from_params_rejects_unknown_and_missing_keys():
    with pytest.raises(ConfigurationError, match="unknown"):
        AMRConfig.from_params({**BASE, "grid": 3})
    params = dict(BASE)
    del params["period"]
    with pytest.raises(ConfigurationError, match="missing"):
        AMRConfig.from_params(params)
