from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from .errors import DimensionMismatchError

__all__ = [
    "DifferentiableFunction",
    "fd_jacobian",
]


def _write(out: np.ndarray, value: Any, what: str) -> None:
    """Copy a callback's returned value into its buffer; None means it wrote in place."""
    if value is None:
        return
    arr = np.asarray(value, dtype=float)
    if arr.shape != out.shape:
        raise DimensionMismatchError(f"{what} must have shape {out.shape}, got {arr.shape}.")
    out[...] = arr


def _eval_column(F: Callable[[np.ndarray], Any], x: np.ndarray, d: int) -> np.ndarray:
    """One FD evaluation of F; shape and finiteness are checked."""
    Fv = np.asarray(F(x), dtype=float)
    if Fv.shape != (d,):
        raise DimensionMismatchError(f"F(x) must return shape ({d},), got {Fv.shape}.")
    if not np.all(np.isfinite(Fv)):
        raise FloatingPointError(f"F(x) returned non-finite values during finite differencing at x={x}.")
    return Fv


def fd_jacobian(
    F: Callable[[np.ndarray], Any],
    x: np.ndarray,
    out: Optional[np.ndarray] = None,
    *,
    dx_rel: float = 1e-6,
) -> np.ndarray:
    """Central-difference Jacobian of a value-returning F at x.

    Column j is (F(x + h_j e_j) - F(x - h_j e_j)) / (2 h_j) with
    h_j = dx_rel * (|x_j| + 1), so the step never collapses at x_j = 0.
    Costs 2*d evaluations of F.

    If ``out`` is given it is filled in place and returned.
    """
    if not dx_rel > 0.0:
        raise ValueError("dx_rel must be positive.")
    x = np.asarray(x, dtype=float)
    d = x.size
    J = np.empty((d, d), dtype=float) if out is None else out

    h = float(dx_rel) * (np.abs(x) + 1.0)
    xh = x.copy()
    for j in range(d):
        xh[j] = x[j] + h[j]
        F_plus = _eval_column(F, xh, d)
        xh[j] = x[j] - h[j]
        F_minus = _eval_column(F, xh, d)
        xh[j] = x[j]
        J[:, j] = (F_plus - F_minus) / (2.0 * h[j])
    return J


@dataclass(frozen=True)
class DifferentiableFunction:
    """Residual F, Jacobian J and a combined evaluator for F(x) = 0.

    Callbacks follow the buffer convention:

        f(x, fx)       writes F(x) into fx, shape (n,)
        g(x, gx)       writes J(x) into gx, shape (n, n)
        fg(x, fx, gx)  writes both

    The buffers belong to the solver and are reused every iteration; a
    callback must not keep a reference to them after it returns. A callback
    may instead return its value (``fg`` returns a pair), which is
    shape-checked and copied into the buffer.

    When ``fg`` is omitted it is built as "call f, then call g".
    """

    f: Callable[..., Any]
    g: Callable[..., Any]
    fg: Optional[Callable[..., Any]] = None

    def __post_init__(self) -> None:
        if not callable(self.f) or not callable(self.g):
            raise TypeError("f and g must be callable.")
        if self.fg is None:
            f, g = self.f, self.g

            def fg(x: np.ndarray, fx: np.ndarray, gx: np.ndarray) -> None:
                _write(fx, f(x, fx), "f(x)")
                _write(gx, g(x, gx), "g(x)")

            object.__setattr__(self, "fg", fg)
        elif not callable(self.fg):
            raise TypeError("fg must be callable.")

    @classmethod
    def from_functions(
        cls,
        F: Callable[[np.ndarray], Any],
        jac: Optional[Callable[[np.ndarray], Any]] = None,
        *,
        dx_rel: float = 1e-6,
    ) -> "DifferentiableFunction":
        """Wrap value-returning F(x) -> (n,) and jac(x) -> (n, n).

        If jac is None, the Jacobian is approximated by central differences
        (see fd_jacobian).
        """
        def f(x: np.ndarray, fx: np.ndarray) -> None:
            _write(fx, F(x), "f(x)")

        if jac is None:
            def g(x: np.ndarray, gx: np.ndarray) -> None:
                fd_jacobian(F, x, gx, dx_rel=dx_rel)
        else:
            def g(x: np.ndarray, gx: np.ndarray) -> None:
                _write(gx, jac(x), "g(x)")

        return cls(f, g)

    def evaluate_residual(self, x: np.ndarray, fx: np.ndarray) -> None:
        _write(fx, self.f(x, fx), "f(x)")

    def evaluate_jacobian(self, x: np.ndarray, gx: np.ndarray) -> None:
        _write(gx, self.g(x, gx), "g(x)")

    def evaluate_both(self, x: np.ndarray, fx: np.ndarray, gx: np.ndarray) -> None:
        out = self.fg(x, fx, gx)
        if out is None:
            return
        try:
            fval, gval = out
        except (TypeError, ValueError) as e:
            raise DimensionMismatchError("fg(x, fx, gx) must return None or a pair (f(x), g(x)).") from e
        _write(fx, fval, "f(x)")
        _write(gx, gval, "g(x)")
