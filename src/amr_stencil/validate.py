"""
Post-run correctness check against analytically derived L1 norms.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
from numba import njit

from .config import COEFX, COEFY, AMRConfig
from .schedule import RefinementScheduler


@njit(cache=True)
def _interior_abs_sum(buffer: np.ndarray, r: int) -> float:
    s = buffer.shape[0]
    total = 0.0
    for j in range(r, s - r):
        for i in range(r, s - r):
            total += abs(buffer[j, i])
    return total


def active_points(size: int, radius: int) -> int:
    """Number of interior points of a ``size x size`` grid for a radius-``radius`` stencil."""
    return (size - 2 * radius) * (size - 2 * radius)


def l1_norm(buffer: np.ndarray, radius: int) -> float:
    """Mean absolute value over the interior of ``buffer``."""
    return float(_interior_abs_sum(buffer, int(radius))) / active_points(buffer.shape[0], radius)


def refinement_iterations(config: AMRConfig) -> List[int]:
    """Stencil passes each patch receives over iterations ``0 .. iterations``."""
    scheduler = RefinementScheduler(config.period, config.duration, config.num_patches)
    total = config.iterations + 1
    return [
        config.sub_iterations * scheduler.active_iterations(g, total)
        for g in range(config.num_patches)
    ]


def reference_norms(config: AMRConfig) -> tuple[float, List[float]]:
    """
    Expected L1 norms of the background grid and of every patch.

    Each stencil pass over a linear field adds exactly ``COEFX + COEFY`` at
    every interior point, so the norm is the pass count times that constant.
    """
    per_pass = COEFX + COEFY
    background = (config.iterations + 1) * per_pass
    patches = [count * per_pass for count in refinement_iterations(config)]
    return background, patches


@dataclass(frozen=True)
class GridCheck:
    label: str
    measured: float
    reference: float
    ok: bool


@dataclass
class ValidationReport:
    epsilon: float
    checks: List[GridCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(check.ok for check in self.checks)

    def add(self, label: str, measured: float, reference: float) -> GridCheck:
        check = GridCheck(
            label=label,
            measured=float(measured),
            reference=float(reference),
            ok=abs(measured - reference) <= self.epsilon,
        )
        self.checks.append(check)
        return check

    def errors(self) -> List[str]:
        return [
            f"L1 norm {c.label} = {c.measured:f}, Reference L1 norm = {c.reference:f}"
            for c in self.checks
            if not c.ok
        ]


def validate_norms(
    norm: float,
    norms_r: Sequence[float],
    reference: float,
    references_r: Sequence[float],
    epsilon: float,
) -> ValidationReport:
    report = ValidationReport(epsilon=epsilon)
    report.add("background", norm, reference)
    for g, (measured, expected) in enumerate(zip(norms_r, references_r)):
        report.add(f"refinement {g}", measured, expected)
    return report


__all__ = [
    "active_points",
    "l1_norm",
    "refinement_iterations",
    "reference_norms",
    "GridCheck",
    "ValidationReport",
    "validate_norms",
]
