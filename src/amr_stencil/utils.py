# src/amr_stencil/utils.py
from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    tomllib = None  # type: ignore

from .config import ValidationFailure
from .validate import ValidationReport


@dataclass
class BenchmarkResult:
    """Outcome of one timed run: norms, validation status and throughput."""

    norm: float
    norms_r: List[float]
    reference_norm: float
    reference_norms_r: List[float]
    report: ValidationReport
    elapsed: float
    avg_time: float
    flops: float
    meta: Optional[Dict[str, Any]] = field(default=None)

    @property
    def validated(self) -> bool:
        return self.report.passed

    @property
    def mflops(self) -> float:
        if self.elapsed <= 0.0:
            return float("inf")
        return 1.0e-6 * self.flops / self.elapsed

    def ensure_meta(self) -> Dict[str, Any]:
        if self.meta is None:
            self.meta = {}
        return self.meta

    def raise_for_status(self) -> None:
        """Raise :class:`ValidationFailure` if any grid missed its reference norm."""
        if not self.validated:
            raise ValidationFailure(self.report)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "validated": self.validated,
            "norm": self.norm,
            "reference_norm": self.reference_norm,
            "norms_r": list(self.norms_r),
            "reference_norms_r": list(self.reference_norms_r),
            "elapsed_seconds": self.elapsed,
            "avg_time_seconds": self.avg_time,
            "flops": self.flops,
            "mflops": self.mflops,
            "meta": self.meta or {},
        }


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def save_result(
    path: str | os.PathLike[str],
    result: BenchmarkResult,
    meta: Optional[Dict[str, Any]] = None,
    *,
    overwrite: bool = True,
) -> None:
    """Write a JSON summary of ``result``; ``meta`` is merged into its metadata."""
    if meta:
        result.ensure_meta().update(meta)
    out_dir = Path(path).parent
    out_dir.mkdir(parents=True, exist_ok=True)
    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")
    with open(path, "w") as fh:
        json.dump(result.as_dict(), fh, indent=2)


def load_result(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """Load a JSON summary written by :func:`save_result`."""
    with open(path, "r") as fh:
        return json.load(fh)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load run parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        if tomllib is None:
            raise RuntimeError("tomllib is unavailable; cannot parse TOML files")
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
