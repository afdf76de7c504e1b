from __future__ import annotations

import dataclasses
import math
import numbers
from dataclasses import dataclass
from typing import Any, Optional, TextIO

import numpy as np

from .functions import DifferentiableFunction
from .newton import newton
from .results import SolverResults

__all__ = ["SolverOptions", "nlsolve"]


@dataclass(frozen=True)
class SolverOptions:
    """
    Options for nlsolve.

    Notes
    -----
    - xtol defaults to 0, which switches the step-size test off; the
      residual test ||F(x)||_inf < ftol is the primary criterion.
    - extended_trace=True implies printing the trace; show_trace keeps the
      value given, the effective setting is ``trace_shown``.
    """
    xtol: float = 0.0
    ftol: float = 1e-8
    iterations: int = 1_000
    store_trace: bool = False
    show_trace: bool = False
    extended_trace: bool = False

    def __post_init__(self) -> None:
        for name in ("xtol", "ftol"):
            value = getattr(self, name)
            if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
                raise ValueError(f"{name} must be a real number, got {value!r}.")
            value = float(value)
            if not math.isfinite(value) or value < 0.0:
                raise ValueError(f"{name} must be a finite, non-negative number, got {value!r}.")
            object.__setattr__(self, name, value)

        iterations = self.iterations
        if isinstance(iterations, (bool, np.bool_)) or not isinstance(iterations, numbers.Integral):
            raise ValueError(f"iterations must be an integer, got {iterations!r}.")
        if iterations < 0:
            raise ValueError("iterations must be non-negative.")
        object.__setattr__(self, "iterations", int(iterations))

        for name in ("store_trace", "show_trace", "extended_trace"):
            value = getattr(self, name)
            if not isinstance(value, (bool, np.bool_)):
                raise ValueError(f"{name} must be a bool, got {value!r}.")
            object.__setattr__(self, name, bool(value))

    @property
    def trace_shown(self) -> bool:
        return self.show_trace or self.extended_trace

    def replace(self, **changes: Any) -> "SolverOptions":
        return dataclasses.replace(self, **changes)


def nlsolve(
    df: DifferentiableFunction,
    initial_x: Any,
    options: Optional[SolverOptions] = None,
    *,
    stream: Optional[TextIO] = None,
    **overrides: Any,
) -> SolverResults:
    """Solve F(x) = 0 with Newton's method.

    Parameters
    ----------
    df
        DifferentiableFunction bundling the residual and Jacobian evaluators.
    initial_x
        Starting point, shape (n,).
    options
        SolverOptions; keyword overrides (xtol=..., ftol=..., ...) are
        applied on top of it.
    stream
        Where show_trace output goes (default: sys.stdout).

    Returns
    -------
    SolverResults
    """
    opts = SolverOptions() if options is None else options
    if overrides:
        opts = opts.replace(**overrides)

    return newton(
        df,
        initial_x,
        opts.xtol,
        opts.ftol,
        opts.iterations,
        opts.store_trace,
        opts.trace_shown,
        opts.extended_trace,
        stream=stream,
    )
