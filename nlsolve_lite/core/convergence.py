from __future__ import annotations

from typing import Any, Tuple

import numpy as np

__all__ = ["norm_inf", "assess_convergence"]


def norm_inf(v: Any) -> float:
    """Max abs component; 0.0 for an empty vector."""
    v = np.asarray(v, dtype=float)
    return float(np.max(np.abs(v))) if v.size else 0.0


def assess_convergence(
    x: np.ndarray,
    x_previous: np.ndarray,
    f: np.ndarray,
    xtol: float,
    ftol: float,
) -> Tuple[bool, bool, bool]:
    """Evaluate the step-size and residual stopping tests.

    Returns
    -------
    (x_converged, f_converged, converged)
        x_converged : ||x - x_previous||_inf < xtol
        f_converged : ||f||_inf < ftol
        converged   : either of the two

    Notes
    -----
    A NaN displacement (x_previous filled with NaN before the first step)
    never compares below xtol, so the step test is false until a step exists.
    """
    dx = np.asarray(x, dtype=float) - np.asarray(x_previous, dtype=float)
    x_converged = bool(norm_inf(dx) < xtol)
    f_converged = bool(norm_inf(f) < ftol)
    return x_converged, f_converged, x_converged or f_converged
