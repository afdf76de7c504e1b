from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .trace import SolverTrace

__all__ = ["SolverResults"]


def _frozen_copy(x: np.ndarray) -> np.ndarray:
    arr = np.array(x, dtype=float, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class SolverResults:
    """Summary of a finished solve.

    Attributes
    ----------
    method
        Algorithm name.
    initial_x, zero
        Starting point and final iterate (read-only copies).
    residual_norm
        ||F(zero)||_inf.
    iterations
        Number of Newton steps taken.
    x_converged, xtol
        Step test ||x - x'||_inf < xtol and its tolerance.
    f_converged, ftol
        Residual test ||F(x)||_inf < ftol and its tolerance.
    trace
        Stored per-iteration states (empty unless store_trace was on).
    f_calls, g_calls
        Residual / Jacobian evaluator invocations.
    """

    method: str
    initial_x: np.ndarray
    zero: np.ndarray
    residual_norm: float
    iterations: int
    x_converged: bool
    xtol: float
    f_converged: bool
    ftol: float
    trace: SolverTrace = field(default_factory=SolverTrace)
    f_calls: int = 0
    g_calls: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "initial_x", _frozen_copy(self.initial_x))
        object.__setattr__(self, "zero", _frozen_copy(self.zero))

    def converged(self) -> bool:
        return self.x_converged or self.f_converged

    def __str__(self) -> str:
        lines = [
            "Results of Nonlinear Solver Algorithm",
            f" * Algorithm: {self.method}",
            f" * Starting Point: {np.array2string(self.initial_x, separator=', ')}",
            f" * Zero: {np.array2string(self.zero, separator=', ')}",
            f" * Inf-norm of residuals: {self.residual_norm:f}",
            f" * Iterations: {self.iterations:d}",
            f" * Convergence: {self.converged()}",
            f"   * |x - x'| < {self.xtol:.1e}: {self.x_converged}",
            f"   * |f(x)| < {self.ftol:.1e}: {self.f_converged}",
            f" * Function Calls (f): {self.f_calls:d}",
            f" * Jacobian Calls (df/dx): {self.g_calls:d}",
        ]
        return "\n".join(lines)
