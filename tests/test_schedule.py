"""
Tests for the refinement layout and lifecycle.
"""

import pytest

from amr_stencil.schedule import RefinementScheduler, corner_origins


def test_corner_origins():
    assert corner_origins(20, 4) == [(0, 0), (15, 15), (0, 15), (15, 0)]


def test_born_only_on_period_boundaries():
    sched = RefinementScheduler(period=3, duration=2)
    born = [sched.born(it) for it in range(13)]
    assert born == [0, None, None, 1, None, None, 2, None, None, 3, None, None, 0]


def test_active_window_follows_birth():
    sched = RefinementScheduler(period=3, duration=2)
    active = [sched.active(it) for it in range(12)]
    assert active == [0, 0, None, 1, 1, None, 2, 2, None, 3, 3, None]
    # Whenever a patch is born, the same patch is the one that becomes active
    for it in range(0, 60, 3):
        assert sched.born(it) == sched.active(it)


@pytest.mark.parametrize("period, duration", [(1, 1), (2, 1), (4, 4), (5, 3), (7, 2)])
def test_each_patch_active_duration_times_per_cycle(period, duration):
    sched = RefinementScheduler(period=period, duration=duration)
    counts = [0, 0, 0, 0]
    for it in range(sched.cycle_length):
        g = sched.active(it)
        if g is not None:
            counts[g] += 1
    assert counts == [duration] * 4


@pytest.mark.parametrize("period, duration", [(1, 1), (2, 1), (3, 3), (5, 2)])
def test_active_iterations_matches_brute_force(period, duration):
    sched = RefinementScheduler(period=period, duration=duration)
    for total in range(1, 4 * sched.cycle_length + 3):
        counts = [0, 0, 0, 0]
        for it in range(total):
            g = sched.active(it)
            if g is not None:
                counts[g] += 1
        assert counts == [sched.active_iterations(g, total) for g in range(4)]


def test_scheduler_parameterized_on_patch_count():
    sched = RefinementScheduler(period=2, duration=1, num_patches=3)
    assert [sched.born(it) for it in range(0, 12, 2)] == [0, 1, 2, 0, 1, 2]
    assert sched.active_iterations(2, 12) == 2


def test_num_births():
    sched = RefinementScheduler(period=3, duration=1)
    assert sched.num_births(1) == 1
    assert sched.num_births(3) == 1
    assert sched.num_births(4) == 2
    assert sched.num_births(13) == 5
    assert sched.num_births(0) == 0


def test_invalid_schedule():
    with pytest.raises(ValueError):
        RefinementScheduler(period=0, duration=1)
    with pytest.raises(ValueError):
        RefinementScheduler(period=2, duration=3)
    with pytest.raises(ValueError):
        RefinementScheduler(period=2, duration=0)
