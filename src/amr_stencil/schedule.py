"""
Refinement lifecycle: where the patches sit and when they live.

Patches take turns. Every ``period`` iterations the next patch in round-robin
order is born by interpolation, and it stays active (receives stencil
sub-iterations) for the first ``duration`` iterations of its period. Because
``duration <= period`` at most one patch is active in any iteration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


def corner_origins(n: int, nr: int) -> List[Tuple[int, int]]:
    """
    Background-grid origins ``(rstarti, rstartj)`` of the four corner patches.

    Order: bottom-left, top-right, top-left, bottom-right.
    """
    far = n - nr - 1
    return [(0, 0), (far, far), (0, far), (far, 0)]


@dataclass(frozen=True)
class RefinementScheduler:
    period: int
    duration: int
    num_patches: int = 4

    def __post_init__(self) -> None:
        if self.period < 1:
            raise ValueError(f"refinement period must be at least one: {self.period}")
        if self.duration < 1 or self.duration > self.period:
            raise ValueError(
                f"refinement duration must be positive, no greater than period: {self.duration}"
            )
        if self.num_patches < 1:
            raise ValueError(f"number of patches must be positive: {self.num_patches}")

    @property
    def cycle_length(self) -> int:
        """Iterations needed for every patch to be born once."""
        return self.period * self.num_patches

    def phase_owner(self, iteration: int) -> int:
        return (iteration // self.period) % self.num_patches

    def born(self, iteration: int) -> Optional[int]:
        """Patch interpolated at ``iteration``, or ``None``."""
        if iteration % self.period == 0:
            return self.phase_owner(iteration)
        return None

    def active(self, iteration: int) -> Optional[int]:
        """Patch receiving sub-iterations at ``iteration``, or ``None``."""
        if iteration % self.period < self.duration:
            return self.phase_owner(iteration)
        return None

    def active_iterations(self, patch: int, total_iterations: int) -> int:
        """
        Iterations among ``0 .. total_iterations-1`` during which ``patch`` is active.

        Closed form of counting :meth:`active` over the run: every complete
        cycle contributes ``duration``; the trailing partial cycle contributes
        whatever part of the patch's slot it reaches.
        """
        full_cycles = total_iterations // self.cycle_length
        leftover = total_iterations % self.cycle_length
        partial = min(max(0, leftover - patch * self.period), self.duration)
        return full_cycles * self.duration + partial

    def num_births(self, total_iterations: int) -> int:
        """Number of period-aligned iterations among ``0 .. total_iterations-1``."""
        if total_iterations <= 0:
            return 0
        return (total_iterations - 1) // self.period + 1


__all__ = ["corner_origins", "RefinementScheduler"]
