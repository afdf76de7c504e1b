from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Optional, TextIO

import numpy as np

from .convergence import assess_convergence, norm_inf
from .errors import DimensionMismatchError, SingularJacobianError
from .functions import DifferentiableFunction
from .results import SolverResults
from .trace import TRACE_HEADER, SolverTrace, update_trace

__all__ = ["newton"]

logger = logging.getLogger(__name__)


def _as_vec(x: Any) -> np.ndarray:
    x = np.array(x, dtype=float, copy=True)
    if x.ndim != 1:
        raise DimensionMismatchError(f"initial_x must be a 1D array-like of shape (n,), got {x.shape}.")
    return x


def _initial_evaluation(df: DifferentiableFunction, x: np.ndarray, fvec: np.ndarray, fjac: np.ndarray) -> None:
    """First fg call on NaN-filled buffers; every entry must be written."""
    n = x.size
    try:
        df.evaluate_both(x, fvec, fjac)
    except DimensionMismatchError:
        raise
    except (ValueError, IndexError) as e:
        raise DimensionMismatchError(
            f"evaluators do not fit the problem dimension n={n} (f(x) -> ({n},), g(x) -> ({n},{n})): {e}"
        ) from e
    if np.isnan(fvec).any():
        raise DimensionMismatchError(f"f(x) left entries of its ({n},) buffer unset or returned NaN.")
    if np.isnan(fjac).any():
        raise DimensionMismatchError(f"g(x) left entries of its ({n},{n}) buffer unset or returned NaN.")


def _newton_step(fjac: np.ndarray, fvec: np.ndarray, it: int) -> np.ndarray:
    """Solve J * delta = -F exactly (dense LU)."""
    try:
        delta = np.linalg.solve(fjac, -fvec)
    except np.linalg.LinAlgError as e:
        raise SingularJacobianError(f"Newton: singular Jacobian at iter={it} ({e}).", iteration=it) from e
    if not np.all(np.isfinite(delta)):
        raise SingularJacobianError(
            f"Newton: non-finite step at iter={it} (ill-conditioned Jacobian or non-finite residual).",
            iteration=it,
        )
    return delta


def newton(
    df: DifferentiableFunction,
    initial_x: Any,
    xtol: float,
    ftol: float,
    iterations: int,
    store_trace: bool,
    show_trace: bool,
    extended_trace: bool,
    stream: Optional[TextIO] = None,
) -> SolverResults:
    """Plain Newton iteration x <- x + delta with J(x) delta = -F(x).

    Parameters
    ----------
    df
        Residual / Jacobian evaluators. ``df.fg`` is called once at the
        start and once per iteration, so both call counters read N + 1
        after N iterations.
    initial_x
        Starting point, shape (n,). Not modified.
    xtol, ftol
        Stopping tests ||x - x'||_inf < xtol or ||F(x)||_inf < ftol.
    iterations
        Maximum number of Newton steps. Reaching it is reported through the
        convergence flags, not raised.
    store_trace, show_trace, extended_trace
        Keep the per-iteration states in the result / print them to
        ``stream`` (default stdout) / attach x, f(x), g(x) and the step to
        each state.

    Raises
    ------
    DimensionMismatchError
        initial_x is not 1D, an evaluator returned a wrongly shaped value, or
        the first evaluation did not fill its buffers.
    SingularJacobianError
        The linear solve failed or gave a non-finite step.
    """
    x0 = _as_vec(initial_x)
    x = x0.copy()
    n = int(x.size)
    stream = sys.stdout if stream is None else stream

    x_previous = np.full(n, np.nan, dtype=float)
    fvec = np.full(n, np.nan, dtype=float)
    fjac = np.full((n, n), np.nan, dtype=float)

    logger.debug("Newton: n=%d, xtol=%g, ftol=%g, iterations=%d", n, xtol, ftol, iterations)

    _initial_evaluation(df, x, fvec, fjac)
    f_calls, g_calls = 1, 1

    it = 0
    _, f_converged, _ = assess_convergence(x, x_previous, fvec, xtol, ftol)
    # no step yet: only the residual test can hold (also for n == 0)
    x_converged = False
    converged = f_converged

    tr = SolverTrace()
    tracing = store_trace or show_trace or extended_trace
    if show_trace:
        print(TRACE_HEADER, file=stream)
    if tracing:
        dt: Dict[str, Any] = {}
        if extended_trace:
            dt["x"] = x.copy()
            dt["f(x)"] = fvec.copy()
            dt["g(x)"] = fjac.copy()
        update_trace(tr, it, norm_inf(fvec), np.nan, dt, store_trace, show_trace, stream)

    while not converged and it < iterations:
        it += 1

        delta = _newton_step(fjac, fvec, it)
        x_previous[:] = x
        x += delta

        df.evaluate_both(x, fvec, fjac)
        f_calls += 1
        g_calls += 1

        x_converged, f_converged, converged = assess_convergence(x, x_previous, fvec, xtol, ftol)

        fnorm = norm_inf(fvec)
        stepnorm = float(np.linalg.norm(delta))
        logger.debug("Newton: iter=%d |f|_inf=%.3e |step|_2=%.3e", it, fnorm, stepnorm)

        if tracing:
            dt = {}
            if extended_trace:
                dt["x"] = x.copy()
                dt["f(x)"] = fvec.copy()
                dt["g(x)"] = fjac.copy()
                dt["delta"] = delta.copy()
            update_trace(tr, it, fnorm, stepnorm, dt, store_trace, show_trace, stream)

    if converged:
        logger.debug("Newton: converged after %d iterations (x=%s, f=%s).", it, x_converged, f_converged)
    else:
        logger.debug("Newton: no convergence within %d iterations, |f|_inf=%.3e.", iterations, norm_inf(fvec))

    return SolverResults(
        method="Newton",
        initial_x=x0,
        zero=x,
        residual_norm=norm_inf(fvec),
        iterations=it,
        x_converged=x_converged,
        xtol=float(xtol),
        f_converged=f_converged,
        ftol=float(ftol),
        trace=tr,
        f_calls=f_calls,
        g_calls=g_calls,
    )
