"""
Run configuration and the error types raised around the compute loop.
"""

from __future__ import annotations

from dataclasses import MISSING, asdict, dataclass, fields
from typing import Any, Mapping

import numpy as np

from .weights import SHAPES, STAR

COEFX = 1.0
COEFY = 1.0

PRECISIONS = {
    "double": (np.float64, 1.0e-8),
    "single": (np.float32, 1.0e-3),
}


class ConfigurationError(ValueError):
    """A run parameter violates its constraints."""


class AllocationError(MemoryError):
    """A grid buffer could not be reserved."""


class ValidationFailure(RuntimeError):
    """Measured norms do not match their analytic references."""

    def __init__(self, report) -> None:
        self.report = report
        super().__init__("; ".join(report.errors()) or "Solution does not validate")


@dataclass(frozen=True)
class AMRConfig:
    """
    Parameters of one benchmark run.

    ``radius``, ``shape`` and ``precision`` select the stencil and element
    type; they are fixed for the lifetime of a simulator. ``tile_size`` of 0,
    or larger than ``n``, disables loop tiling.
    """

    iterations: int
    n: int
    nr: int
    r_level: int
    period: int
    duration: int
    sub_iterations: int
    tile_size: int = 0
    radius: int = 2
    shape: str = STAR
    precision: str = "double"
    num_patches: int = 4
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.iterations < 1:
            raise ConfigurationError(f"iterations must be >= 1 : {self.iterations}")
        if self.n < 2:
            raise ConfigurationError(f"grid must have at least one cell: {self.n}")
        if self.nr < 1:
            raise ConfigurationError(f"refinements must have at least one cell: {self.nr}")
        if self.nr >= self.n:
            raise ConfigurationError(
                f"refinements must be contained in background grid: {self.nr}"
            )
        if self.r_level < 0:
            raise ConfigurationError(f"refinement levels must be >= 0 : {self.r_level}")
        if self.period < 1:
            raise ConfigurationError(f"refinement period must be at least one: {self.period}")
        if self.duration < 1 or self.duration > self.period:
            raise ConfigurationError(
                "refinement duration must be positive, no greater than period: "
                f"{self.duration}"
            )
        if self.sub_iterations < 1:
            raise ConfigurationError(
                f"refinement sub-iterations must be positive: {self.sub_iterations}"
            )
        if self.shape not in SHAPES:
            raise ConfigurationError(f"unknown stencil shape: {self.shape}")
        if self.precision not in PRECISIONS:
            raise ConfigurationError(f"unknown precision: {self.precision}")
        if self.num_patches != 4:
            raise ConfigurationError(
                f"patches are laid out on the four grid corners: {self.num_patches}"
            )
        if self.radius < 1:
            raise ConfigurationError(f"Stencil radius {self.radius} should be positive")
        if 2 * self.radius + 1 > self.n:
            raise ConfigurationError(
                f"Stencil radius {self.radius} exceeds grid size {self.n}"
            )
        if 2 * self.radius + 1 > self.nr_true:
            raise ConfigurationError(
                f"Stencil radius {self.radius} exceeds refinement size {self.nr_true}"
            )

    # ------------------------------------------------------------------ derived
    @property
    def expand(self) -> int:
        return 1 << self.r_level

    @property
    def hr(self) -> float:
        return 1.0 / self.expand

    @property
    def nr_true(self) -> int:
        return self.nr * self.expand + 1

    @property
    def tiling(self) -> bool:
        return 0 < self.tile_size <= self.n

    @property
    def effective_tile_size(self) -> int:
        return self.tile_size if self.tiling else 0

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(PRECISIONS[self.precision][0])

    @property
    def epsilon(self) -> float:
        return PRECISIONS[self.precision][1]

    # ------------------------------------------------------------------ helpers
    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "AMRConfig":
        """Build a config from a plain mapping, e.g. a loaded JSON/TOML file."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise ConfigurationError(f"unknown configuration keys: {', '.join(unknown)}")
        missing = sorted(
            f.name for f in fields(cls) if f.name not in params and f.default is MISSING
        )
        if missing:
            raise ConfigurationError(f"missing configuration keys: {', '.join(missing)}")
        return cls(**dict(params))

    def to_dict(self) -> dict:
        return asdict(self)


__all__ = [
    "COEFX",
    "COEFY",
    "PRECISIONS",
    "ConfigurationError",
    "AllocationError",
    "ValidationFailure",
    "AMRConfig",
]
