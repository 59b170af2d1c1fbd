"""
AMR Stencil Benchmark - Serial Core

This package measures how fast a fixed, symmetric stencil can be applied to a
square grid while small refinement patches are periodically born, updated and
retired at the grid corners:
- AMRSimulator: grid ownership, iteration loop, timing
- weights / stencil: coefficient tables and the (tiled or untiled) kernels
- interpolate: coarse-to-fine projection at patch birth
- schedule: patch layout and lifecycle
- validate: analytic L1-norm check
"""

from .amr_sim import AMRSimulator, count_flops, linear_field, run_model
from .config import (
    AMRConfig,
    AllocationError,
    ConfigurationError,
    ValidationFailure,
)
from .interpolate import interpolate
from .schedule import RefinementScheduler, corner_origins
from .stencil import StencilApplicator, add_constant, make_applicator
from .validate import ValidationReport, l1_norm, reference_norms
from .weights import COMPACT, STAR, WeightTables, build_weight_tables, build_weights
from . import utils

__all__ = [
    # Simulator
    "AMRSimulator",
    "run_model",
    "count_flops",
    "linear_field",
    # Configuration and errors
    "AMRConfig",
    "ConfigurationError",
    "AllocationError",
    "ValidationFailure",
    # Numerical building blocks
    "STAR",
    "COMPACT",
    "WeightTables",
    "build_weights",
    "build_weight_tables",
    "StencilApplicator",
    "make_applicator",
    "add_constant",
    "interpolate",
    "RefinementScheduler",
    "corner_origins",
    "ValidationReport",
    "l1_norm",
    "reference_norms",
    # Utilities
    "utils",
]
